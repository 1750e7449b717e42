"""Typed structures for conversation state and the activities exchanged per turn."""

from typing import Any, Dict, List, TypedDict


class UserProfile(TypedDict):
    """What the bot knows about the user."""

    name: str


class WelcomeUserState(TypedDict):
    """Whether the user has been welcomed in this conversation."""

    did_bot_welcome_user: bool


class ChannelAccount(TypedDict, total=False):
    id: str
    name: str


class ConversationAccount(TypedDict, total=False):
    id: str


# "from" is a keyword, hence the functional form.
Activity = TypedDict(
    "Activity",
    {
        "type": str,
        "text": str,
        "channelId": str,
        "from": ChannelAccount,
        "recipient": ChannelAccount,
        "conversation": ConversationAccount,
        "membersAdded": List[ChannelAccount],
        "attachments": List[Dict[str, Any]],
    },
    total=False,
)


class ConversationState(TypedDict, total=False):
    """Per-conversation state persisted by the checkpointer between turns."""

    text: str
    intent: str
    welcome: WelcomeUserState
    user_profile: UserProfile
    replies: List[Activity]


def new_user_profile() -> UserProfile:
    return {"name": ""}


def new_welcome_user_state() -> WelcomeUserState:
    return {"did_bot_welcome_user": False}
