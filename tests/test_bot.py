"""
Turn-level tests for WelcomeUserBot: greeting sequence, name capture, keyword routing
and per-conversation persistence.
"""
from unittest.mock import call

import pytest

from bot import InvalidActivityError, WelcomeUserBot, conversation_key
from cards import HERO_CARD_CONTENT_TYPE
from nodes import WELCOME_MESSAGE


def run_turn(bot, activity):
    replies = []
    bot.on_turn(activity, replies.append)
    return replies


def is_card(reply):
    attachments = reply.get("attachments") or []
    return len(attachments) == 1 and attachments[0]["contentType"] == HERO_CARD_CONTENT_TYPE


class TestMembersAdded:
    def _update(self, members):
        return {
            "type": "conversationUpdate",
            "channelId": "test",
            "conversation": {"id": "conv-1"},
            "recipient": {"id": "bot-1", "name": "ReplyHelper"},
            "membersAdded": members,
        }

    def test_greeting_sequence_for_new_member(self, bot, sleep):
        replies = run_turn(bot, self._update([{"id": "user-1", "name": "Ada"}]))

        assert [r["text"] for r in replies] == [
            "Hi - Ada",
            WELCOME_MESSAGE,
            "Help me know you better.",
            "What is your name?",
        ]
        assert sleep.call_args_list == [call(0.0)] * 3

    def test_bot_itself_is_not_greeted(self, bot, sleep):
        replies = run_turn(bot, self._update([{"id": "bot-1", "name": "ReplyHelper"}]))
        assert replies == []
        sleep.assert_not_called()

    def test_each_added_member_is_greeted(self, bot):
        replies = run_turn(
            bot,
            self._update(
                [
                    {"id": "bot-1", "name": "ReplyHelper"},
                    {"id": "user-1", "name": "Ada"},
                    {"id": "user-2", "name": "Grace"},
                ]
            ),
        )
        assert len(replies) == 8
        assert replies[0]["text"] == "Hi - Ada"
        assert replies[4]["text"] == "Hi - Grace"


class TestMessages:
    def test_first_message_captures_name_and_sends_card(self, bot, message):
        replies = run_turn(bot, message("  Ada Lovelace  "))

        assert replies[0]["text"] == "Thanks Ada Lovelace. Let me see how you day looks like..."
        assert is_card(replies[1])
        assert len(replies) == 2

        state = bot.get_state(message(""))
        assert state["welcome"]["did_bot_welcome_user"] is True
        assert state["user_profile"]["name"] == "Ada Lovelace"

    def test_greeting_branch_runs_only_once(self, bot, message):
        run_turn(bot, message("Ada"))
        replies = run_turn(bot, message("Grace"))

        assert [r.get("text") for r in replies] == [WELCOME_MESSAGE]
        assert bot.get_state(message(""))["user_profile"]["name"] == "Ada"

    @pytest.mark.parametrize("text", ["support", "SUPPORT", "Support"])
    def test_support_resends_card(self, bot, message, text):
        run_turn(bot, message("Ada"))
        replies = run_turn(bot, message(text))
        assert len(replies) == 1
        assert is_card(replies[0])

    @pytest.mark.parametrize("text", ["info", "INFO", "Info"])
    def test_info_echoes_keyword(self, bot, message, text):
        run_turn(bot, message("Ada"))
        replies = run_turn(bot, message(text))
        assert [r["text"] for r in replies] == ["You said info."]

    @pytest.mark.parametrize("text", ["hello", "support please", " info", ""])
    def test_other_text_gets_welcome_message(self, bot, message, text):
        run_turn(bot, message("Ada"))
        replies = run_turn(bot, message(text))
        assert [r["text"] for r in replies] == [WELCOME_MESSAGE]

    def test_missing_text_after_greeting(self, bot, message):
        run_turn(bot, message("Ada"))
        activity = message("ignored")
        del activity["text"]
        replies = run_turn(bot, activity)
        assert [r["text"] for r in replies] == [WELCOME_MESSAGE]

    def test_conversations_are_isolated(self, bot, message):
        run_turn(bot, message("Ada", conversation="conv-a"))
        replies = run_turn(bot, message("Grace", conversation="conv-b"))

        assert replies[0]["text"].startswith("Thanks Grace.")
        assert bot.get_state(message("", conversation="conv-a"))["user_profile"]["name"] == "Ada"

    def test_state_survives_new_bot_instance(self, settings, sleep, message):
        run_turn(WelcomeUserBot(settings, sleep=sleep), message("Ada"))

        restarted = WelcomeUserBot(settings, sleep=sleep)
        replies = run_turn(restarted, message("info"))
        assert [r["text"] for r in replies] == ["You said info."]


class TestDispatch:
    def test_unknown_activity_type_is_ignored(self, bot):
        replies = run_turn(bot, {"type": "typing", "conversation": {"id": "conv-1"}})
        assert replies == []

    def test_conversation_update_without_members_is_ignored(self, bot):
        replies = run_turn(bot, {"type": "conversationUpdate", "conversation": {"id": "conv-1"}})
        assert replies == []

    def test_message_without_conversation_raises(self, bot):
        with pytest.raises(InvalidActivityError):
            run_turn(bot, {"type": "message", "text": "hi"})

    def test_conversation_key_includes_channel(self, message):
        assert conversation_key(message("x", conversation="c1", channel="teams")) == "teams:c1"
