"""Intent routing for inbound Slack text.

Patterns are checked in order and the first match wins, so the order of the
tables below matters. Anything a mention doesn't match becomes a streamed AI
query; anything a channel message doesn't match is ignored.
"""

import re
from dataclasses import dataclass

MENTION_TOKEN = re.compile(r"<@[UW][A-Z0-9]+>")

GREETING = re.compile(r"^(hi|hello|hey|howdy|good morning|good afternoon|good evening)", re.IGNORECASE)
HELP = re.compile(r"^(help|what can you do|commands|usage)", re.IGNORECASE)
THANKS = re.compile(r"^(thank|thanks|thx|appreciate)", re.IGNORECASE)
STATUS = re.compile(r"^(status|are you (working|online|up|alive)|health)", re.IGNORECASE)
INFO = re.compile(r"^(info|config|configuration|ai info|brain|setup)", re.IGNORECASE)
ASK_KB = re.compile(r"^ask\s+kb(\d+):\s*(.*)", re.IGNORECASE | re.DOTALL)
ASK = re.compile(r"^ask:\s*(.*)", re.IGNORECASE | re.DOTALL)

# Intent kinds
EMPTY = "empty"
GREET = "greeting"
HELP_REQUEST = "help"
THANK = "thanks"
STATUS_CHECK = "status"
INFO_REQUEST = "info"
KB_QUERY = "kb_query"
ASK_QUERY = "ask"
AI_QUERY = "ai_query"
HELLO = "hello"
HELP_HINT = "help_hint"
IGNORE = "ignore"

MENTION_PATTERNS = [
    (GREETING, GREET),
    (HELP, HELP_REQUEST),
    (THANKS, THANK),
    (STATUS, STATUS_CHECK),
    (INFO, INFO_REQUEST),
]

DM_PATTERNS = [
    (GREETING, GREET),
    (HELP, HELP_REQUEST),
]


@dataclass(frozen=True)
class Intent:
    kind: str
    question: str = ""
    kb_index: int | None = None


def strip_mentions(text: str) -> str:
    """Remove <@U123> style user mentions and surrounding whitespace."""
    return MENTION_TOKEN.sub("", text or "").strip()


def _match_kb_query(text: str):
    match = ASK_KB.match(text)
    if match:
        return Intent(KB_QUERY, question=match.group(2).strip(), kb_index=int(match.group(1)))
    return None


def classify_mention(text: str) -> Intent:
    """Classify the text of an @mention."""
    text = strip_mentions(text)
    if len(text) < 2:
        return Intent(EMPTY)

    for pattern, kind in MENTION_PATTERNS:
        if pattern.match(text):
            return Intent(kind)

    return _match_kb_query(text) or Intent(AI_QUERY, question=text)


def classify_message(text: str, is_direct_message: bool = False) -> Intent:
    """Classify a plain channel or DM message (no mention)."""
    text = (text or "").strip()
    if not text:
        return Intent(IGNORE)

    kb_intent = _match_kb_query(text)
    if kb_intent:
        return kb_intent

    match = ASK.match(text)
    if match:
        return Intent(ASK_QUERY, question=match.group(1).strip())

    if is_direct_message:
        for pattern, kind in DM_PATTERNS:
            if pattern.match(text):
                return Intent(kind)

    if "hello" in text:
        return Intent(HELLO)
    if "help" in text.lower():
        return Intent(HELP_HINT)

    return Intent(IGNORE)
