"""Turn handler for the welcome bot.

Each incoming activity is one turn. Conversation updates greet newly added
members with a scripted sequence; messages run through the compiled graph,
whose checkpointer loads and saves the conversation state around the turn.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

from config import Settings, get_settings
from graph import build_bot_graph
from nodes import WELCOME_MESSAGE
from state import Activity, ChannelAccount, ConversationState

SendActivity = Callable[[Activity], Any]

logger = logging.getLogger(__name__)


class InvalidActivityError(ValueError):
    """Raised for incoming activities that cannot be routed to a conversation."""


def conversation_key(activity: Activity) -> str:
    """Identify the conversation an activity belongs to."""

    conversation_id = (activity.get("conversation") or {}).get("id")
    if not conversation_id:
        raise InvalidActivityError("Activity has no conversation id")
    return f"{activity.get('channelId', 'default')}:{conversation_id}"


class ResponseHelper:
    """Sends replies for one turn, optionally pausing before each one."""

    def __init__(self, send: SendActivity, delay_seconds: float, sleep: Callable[[float], None] = time.sleep):
        self._send = send
        self._delay_seconds = delay_seconds
        self._sleep = sleep

    def show(self, text: str) -> Any:
        return self._send({"type": "message", "text": text})

    def show_with_delay(self, text: str) -> Any:
        self._sleep(self._delay_seconds)
        return self.show(text)


class WelcomeUserBot:
    """Greets new members, captures their name, then answers 'info' and 'support'."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        app=None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._app = app or build_bot_graph(self._settings.checkpoint_path)
        self._sleep = sleep

    def on_turn(self, activity: Activity, send: SendActivity) -> None:
        activity_type = activity.get("type")
        if activity_type == "message":
            self.on_message_activity(activity, send)
        elif activity_type == "conversationUpdate" and activity.get("membersAdded"):
            self.on_members_added(activity["membersAdded"], activity, send)
        else:
            logger.debug("Ignoring activity of type %r", activity_type)

    def on_members_added(
        self,
        members_added: List[ChannelAccount],
        activity: Activity,
        send: SendActivity,
    ) -> None:
        # Not every channel sends conversationUpdate, so this may never run.
        helper = ResponseHelper(send, self._settings.greeting_delay_seconds, self._sleep)
        recipient_id = (activity.get("recipient") or {}).get("id")
        for member in members_added:
            if member.get("id") == recipient_id:
                continue
            helper.show(f"Hi - {member.get('name', '')}")
            helper.show_with_delay(WELCOME_MESSAGE)
            helper.show_with_delay("Help me know you better.")
            helper.show_with_delay("What is your name?")

    def on_message_activity(self, activity: Activity, send: SendActivity) -> None:
        config = {"configurable": {"thread_id": conversation_key(activity)}}
        turn_input: ConversationState = {
            "text": activity.get("text") or "",
            "intent": "",
            "replies": [],
        }
        result = self._app.invoke(turn_input, config=config)
        for reply in result.get("replies", []):
            send(reply)

    def get_state(self, activity: Activity) -> ConversationState:
        """Return the stored state of the activity's conversation."""

        config = {"configurable": {"thread_id": conversation_key(activity)}}
        return self._app.get_state(config).values


__all__ = ["InvalidActivityError", "conversation_key", "ResponseHelper", "WelcomeUserBot", "SendActivity"]
