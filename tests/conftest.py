"""
Shared pytest fixtures for bot and overlay tests.
"""
import os
from unittest.mock import MagicMock, patch

import pytest

from bot import WelcomeUserBot
from config import Settings


@pytest.fixture
def bot_env(tmp_path):
    """Point the checkpointer at a temp file and disable greeting delays."""
    env_vars = {
        "BOT_CHECKPOINT_PATH": str(tmp_path / "checkpoints" / "bot.sqlite"),
        "GREETING_DELAY_SECONDS": "0",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(bot_env):
    return Settings()


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def bot(settings, sleep):
    return WelcomeUserBot(settings, sleep=sleep)


@pytest.fixture
def message():
    """Factory for message activities in a given conversation."""

    def _message(text, conversation="conv-1", channel="test"):
        return {
            "type": "message",
            "channelId": channel,
            "conversation": {"id": conversation},
            "from": {"id": "user-1", "name": "User"},
            "recipient": {"id": "bot-1", "name": "ReplyHelper"},
            "text": text,
        }

    return _message
