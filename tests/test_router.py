"""Tests for intent routing of mentions and messages."""

from acorn_bot.slack_bot import router
from acorn_bot.slack_bot.router import Intent, classify_mention, classify_message, strip_mentions


class TestStripMentions:
    def test_removes_user_tokens(self) -> None:
        assert strip_mentions("<@U0ACORN> hello <@W12345>") == "hello"

    def test_handles_none(self) -> None:
        assert strip_mentions(None) == ""


class TestClassifyMention:
    def test_empty_or_single_character(self) -> None:
        assert classify_mention("<@U0ACORN>").kind == router.EMPTY
        assert classify_mention("<@U0ACORN> ?").kind == router.EMPTY

    def test_canned_intents_in_order(self) -> None:
        cases = {
            "hello there": router.GREET,
            "Good morning!": router.GREET,
            "help": router.HELP_REQUEST,
            "what can you do?": router.HELP_REQUEST,
            "thanks a lot": router.THANK,
            "status": router.STATUS_CHECK,
            "are you alive?": router.STATUS_CHECK,
            "info": router.INFO_REQUEST,
            "configuration please": router.INFO_REQUEST,
        }
        for text, kind in cases.items():
            assert classify_mention(f"<@U0ACORN> {text}").kind == kind, text

    def test_kb_query(self) -> None:
        assert classify_mention("<@U0ACORN> ask kb2: where are the nuts?") == Intent(
            router.KB_QUERY, question="where are the nuts?", kb_index=2
        )

    def test_anything_else_is_ai_query(self) -> None:
        intent = classify_mention("<@U0ACORN> Why do oak trees drop acorns?")

        assert intent == Intent(router.AI_QUERY, question="Why do oak trees drop acorns?")


class TestClassifyMessage:
    def test_kb_query(self) -> None:
        assert classify_message("ASK KB1:   multiline\nquestion") == Intent(
            router.KB_QUERY, question="multiline\nquestion", kb_index=1
        )

    def test_kb_query_without_question(self) -> None:
        assert classify_message("ask kb3:") == Intent(router.KB_QUERY, question="", kb_index=3)

    def test_ask(self) -> None:
        assert classify_message("ask: what is a drey?") == Intent(router.ASK_QUERY, question="what is a drey?")

    def test_empty_ask(self) -> None:
        assert classify_message("ask:   ") == Intent(router.ASK_QUERY, question="")

    def test_direct_message_greeting_and_help(self) -> None:
        assert classify_message("hey", is_direct_message=True).kind == router.GREET
        assert classify_message("help me", is_direct_message=True).kind == router.HELP_REQUEST

    def test_channel_hello_and_help_hints(self) -> None:
        assert classify_message("well hello everyone").kind == router.HELLO
        assert classify_message("can someone Help?").kind == router.HELP_HINT

    def test_unrelated_chatter_is_ignored(self) -> None:
        assert classify_message("lunch at noon?").kind == router.IGNORE
        assert classify_message("").kind == router.IGNORE
        assert classify_message(None).kind == router.IGNORE
