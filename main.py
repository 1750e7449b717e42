"""CLI entrypoint for chatting with the ReplyHelper welcome bot."""

from __future__ import annotations

import uuid

from bot import WelcomeUserBot
from cards import render_activity_text
from config import configure_logging, get_settings
from state import Activity

_BOT_ACCOUNT = {"id": "replyhelper-bot", "name": "ReplyHelper"}
_USER_ACCOUNT = {"id": "console-user", "name": "User"}


def _print_reply(activity: Activity) -> None:
    print(f"Bot: {render_activity_text(activity)}")


def run_bot() -> None:
    """Simple REPL loop standing in for a chat channel."""

    settings = get_settings()
    configure_logging(settings)
    bot = WelcomeUserBot(settings)
    conversation = {"id": f"console-{uuid.uuid4().hex[:8]}"}

    print("--- ReplyHelper Bot is Online ---")
    bot.on_turn(
        {
            "type": "conversationUpdate",
            "channelId": "console",
            "conversation": conversation,
            "recipient": _BOT_ACCOUNT,
            "membersAdded": [_BOT_ACCOUNT, _USER_ACCOUNT],
        },
        _print_reply,
    )

    while True:
        user_input = input("User: ").strip()
        if user_input.lower() in {"exit", "quit"}:
            break
        if not user_input:
            print("Bot: I didn't catch that. Could you rephrase?")
            continue

        bot.on_turn(
            {
                "type": "message",
                "channelId": "console",
                "conversation": conversation,
                "from": _USER_ACCOUNT,
                "recipient": _BOT_ACCOUNT,
                "text": user_input,
            },
            _print_reply,
        )


if __name__ == "__main__":
    run_bot()
