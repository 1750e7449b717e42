"""Graph nodes for the welcome conversation flow."""

import logging
from typing import Literal

from cards import attachment_activity, build_intro_card, text_activity
from state import ConversationState, new_user_profile, new_welcome_user_state


MessageRoute = Literal["capture_name", "info", "support", "welcome"]

WELCOME_MESSAGE = (
    "I am ReplyHelper Bot. My job is to assist you to help prepare the best possible reply "
    "for Customer queries based on the Priority, High Value Customers, Customer preferences "
    "and History."
)

# Exact, case-insensitive keywords; no fuzzy matching.
_KEYWORD_ROUTES = {
    "info": "info",
    "support": "support",
}


def classify_message_node(state: ConversationState) -> MessageRoute:
    """Pick the reply branch for the latest message and record it on the state."""

    welcome = state.get("welcome") or new_welcome_user_state()
    if not welcome.get("did_bot_welcome_user"):
        intent: MessageRoute = "capture_name"
    else:
        text = (state.get("text") or "").lower()
        intent = _KEYWORD_ROUTES.get(text, "welcome")

    state["intent"] = intent
    return intent


def capture_name_node(state: ConversationState) -> ConversationState:
    """First message of a conversation: remember it as the user's name and show the card."""

    if state.get("intent") != "capture_name":
        raise ValueError("capture_name_node invoked for an already welcomed conversation")

    welcome = state.get("welcome") or new_welcome_user_state()
    profile = state.get("user_profile") or new_user_profile()

    welcome["did_bot_welcome_user"] = True
    profile["name"] = (state.get("text") or "").strip()
    state["welcome"] = welcome
    state["user_profile"] = profile
    logging.info("Captured user name %r", profile["name"])

    state["replies"].append(
        text_activity(f"Thanks {profile['name']}. Let me see how you day looks like...")
    )
    state["replies"].append(attachment_activity(build_intro_card()))
    return state


def info_node(state: ConversationState) -> ConversationState:
    text = (state.get("text") or "").lower()
    state["replies"].append(text_activity(f"You said {text}."))
    return state


def support_node(state: ConversationState) -> ConversationState:
    state["replies"].append(attachment_activity(build_intro_card()))
    return state


def welcome_message_node(state: ConversationState) -> ConversationState:
    state["replies"].append(text_activity(WELCOME_MESSAGE))
    return state


__all__ = [
    "MessageRoute",
    "WELCOME_MESSAGE",
    "classify_message_node",
    "capture_name_node",
    "info_node",
    "support_node",
    "welcome_message_node",
]
