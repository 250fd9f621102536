"""Acorn's personality - canned squirrel-themed responses and system prompts."""

import random

USER_PLACEHOLDER = "<USER>"

GREETINGS = [
    "*scampers over quickly* Oh hi <USER>! 🐿️ I was just... ooh is that a shiny thing over there? No wait, focus Acorn, focus! How can I help you? *tail swish*",
    "*pokes head up from behind a tree* Hello <USER>! 🌰 I was organizing my acorns by... wait, what were we talking about? OH RIGHT! What do you need?",
    "*chittering happily* Hey there <USER>! 🐿️ Ready to help! Just let me finish this one thing... or maybe that other thing... okay I'm listening now!",
]

THANK_YOU_RESPONSES = [
    "*preens proudly* Aww, you're welcome <USER>! 🐿️ Now where did I put that acorn... *gets distracted rummaging*",
    "*happy chittering* That's what I'm here for <USER>! 🌰 Helping humans is almost as fun as collecting nuts!",
    "*tail wagging* Anytime <USER>! I do my best work when... ooh is that a new notification? Focus, Acorn! You're welcome! 🥜",
]

THINKING_PREFIXES = [
    "*scratches head with tiny paw* 🐿️ <USER> Hmm, interesting question! Let me think out loud... ",
    "*drops acorn in surprise* Oh! <USER> That's a good one! *scurries up thinking tree* ",
    "*chittering thoughtfully* 🌰 <USER> You know what, I was JUST thinking about this! Let me figure this out... ",
]

EMPTY_MENTION_RESPONSE = """*chittering excitedly* Oh! Oh! <USER>! 🐿️ You called me? I was just... wait, was I organizing my nut collection or debugging code? Both? Anyway!

*tail twitching* Here's what I can help with:
• Just mention me with any question - I'll stream the answer!
• `ask: your question` - I'll find the answer! Eventually!
• `ask kb1: question` - I'll search my special nut storage!
• `/acorn-ask question` - Ooh, fancy slash commands!
• Or just mention me - I love getting mentioned! 🥜"""

HELP_RESPONSE = """*stops mid-leap between branches* Oh! <USER> wants to know what I can do! 🐿️

*organizing acorns while talking*

🌰 *I can help with questions!* (Got distracted by a bird... where was I?)
• Mention me with anything - I'll stream the answer live!
• `ask: question` - for when you want answers (also streams!)
• `ask kb1: question` - I know where the good nuts... I mean knowledge is stored!
• `status` - check if I'm working (spoiler: probably!)
• `info` - my brain configuration details

🐿️ *Just talk naturally!* Everything streams by default - watch me think! It's entertaining! *tail swishing proudly*"""

MESSAGE_HELP_RESPONSE = """*perks up ears* 🐿️ Need a paw? Here's how to reach me:
• `ask: your question` - I'll stream an answer right here!
• `ask kb1: your question` - I'll dig through a specific knowledge base!
• Mention me with `@acorn` - ask me anything!"""

STATUS_TEMPLATE = """*scurries around checking things with tiny clipboard* <USER> 📋🐿️

🌰 *Acorn's Status Report*
• Am I working? {working}
• Been running for: {uptime} *(That's a lot of nut-gathering time!)*
• My brain runs on: Python {python_version} *(Fancy computer stuff!)*
• AI Model: {model_id} *(My thinking acorn! 🌰)*
• RetrieveAndGenerate: {agent}
• Tree Location: {region} *(My server tree!)*
• Knowledge Nuts Stored: {knowledge_bases} 🥜

*tail wagging* Everything looks good to me!"""

INFO_TEMPLATE = """*adjusts tiny glasses and shuffles through acorn notes* <USER> 📚🐿️

🌰 *Acorn's Brain Configuration*

*My Thinking Setup:* *(This is the technical stuff!)*
• My Brain Model: {model_id} *(Very smart, like a super-nut!)*
• RetrieveAndGenerate: {retrieve_and_generate} *(For knowledge base queries!)*
• My Tree Location: {region} *(Where I live in the cloud!)*

*My Knowledge Nut Collection:* 🥜
{kb_list}

*How to Talk to Me:* *(I love all of these!)*
• `ask: your question` - Just ask me anything!
• `ask kb1: question` - I'll check my special nut storage!
• `@acorn your question` - Mention me! I'll stream the answer live!

*chittering excitedly* That's everything! Any questions? 🌳"""

ASK_EMPTY_RESPONSE = "*tilts head* You said \"ask:\" but then... *looks around confused* ...where's the question? Try: `ask: What's the best way to store acorns?` 🐿️"

ASK_THINKING_RESPONSE = "*scurries up thinking tree* 🌳 Let me check my nut collection first, then think..."

PLACEHOLDER_SUFFIX = "*tail twitching with anticipation* 🐿️"

ERROR_GLYPH = "❌"

GENERIC_ERROR_RESPONSE = "Sorry, I encountered an error while processing your message."

AGENT_EMPTY_RESPONSE = "I received your question but couldn't generate a response."

MODEL_ERROR_RESPONSE = "Sorry, I encountered an error while processing your question. Please try again later."

STREAM_ERROR_RESPONSE = "Sorry, I encountered an error while generating a streaming response."

MODEL_NOT_CONFIGURED_RESPONSE = "Sorry, my thinking acorn isn't configured yet. Please ask an admin to check my setup."

# System prompts for the direct model backend
_PERSONA = "You are Acorn, a helpful but easily distracted squirrel AI assistant integrated into Slack! 🐿️"

_QUERY_STYLE = (
    "You're enthusiastic about helping but sometimes get sidetracked by random thoughts about nuts, trees, "
    'shiny objects, or other squirrel things. You might say things like "Oh! Was that a bird?" or '
    '"This reminds me of the time I buried an acorn..." but you ALWAYS get back on track and provide '
    "accurate, helpful answers. Be concise but charming, and show your squirrel personality while being "
    "genuinely helpful!"
)

_STREAM_STYLE = (
    "When streaming responses, show your thought process including occasional distractions like "
    '"Oh! A shiny thing!" or "Where was I? Oh right..." but always get back on track. Be engaging and show '
    "your personality while providing accurate, helpful information!"
)


def _with_user(template: str, user_id: str) -> str:
    return template.replace(USER_PLACEHOLDER, f"<@{user_id}>")


def get_random_greeting(user_id: str) -> str:
    return _with_user(random.choice(GREETINGS), user_id)


def get_random_thank_you(user_id: str) -> str:
    return _with_user(random.choice(THANK_YOU_RESPONSES), user_id)


def get_random_thinking_prefix(user_id: str) -> str:
    return _with_user(random.choice(THINKING_PREFIXES), user_id)


def get_empty_mention_response(user_id: str) -> str:
    return _with_user(EMPTY_MENTION_RESPONSE, user_id)


def get_help_response(user_id: str) -> str:
    return _with_user(HELP_RESPONSE, user_id)


def get_hello_response(user_id: str) -> str:
    return f"*waves tiny paw* Hey there <@{user_id}>! 🐿️ Mention me or say `ask: your question` and I'll help out!"


def get_member_joined_response(user_id: str) -> str:
    return (
        f"*scampers excitedly* 🐿️ Welcome to the channel <@{user_id}>! I'm Acorn, your friendly AI assistant! "
        "Feel free to ask me anything or just say hi! 🌰"
    )


def get_status_response(user_id: str, status: dict, uptime: str, python_version: str) -> str:
    text = STATUS_TEMPLATE.format(
        working="✅ Like a busy squirrel!" if status.get("initialized") else "❌ Uh oh...",
        uptime=uptime,
        python_version=python_version,
        model_id=status.get("model_id", "unknown"),
        agent="✅ Available!" if status.get("agent_configured") else "❌ Not configured",
        region=status.get("region", "unknown"),
        knowledge_bases=status.get("knowledge_bases", 0),
    )
    return _with_user(text, user_id)


def get_info_response(user_id: str, status: dict, kb_list: str) -> str:
    text = INFO_TEMPLATE.format(
        model_id=status.get("model_id", "unknown"),
        retrieve_and_generate=status.get("retrieve_and_generate", "Not configured"),
        region=status.get("region", "unknown"),
        kb_list=kb_list,
    )
    return _with_user(text, user_id)


def kb_not_found_response(kb_index: int, total_kbs: int) -> str:
    return (
        f"*rummages through acorn collection* ❌ Hmm, I don't have knowledge nut #{kb_index} in my collection! "
        f"I only have {total_kbs} special nuts stored away! 🥜"
    )


def kb_empty_question_response(kb_index: int) -> str:
    return (
        f"*chittering excitedly* You want to search my special nut collection #{kb_index} but... what should I "
        "look for? Try: `ask kb1: Where are the best acorn recipes?` 🐿️"
    )


def kb_thinking_prefix(kb_index: int) -> str:
    return f"*diving into knowledge nut collection #{kb_index}* 🥜 "


def ask_success_prefix(knowledge_base_used: bool) -> str:
    if knowledge_base_used:
        return "*chittering proudly while holding acorn* Found it in my special nut storage! 🥜 "
    return "*scratches head thoughtfully* Hmm, not in my acorn collection, but I figured it out anyway! 🐿️ "


def placeholder_text(prefix: str = "") -> str:
    return f"{prefix}{PLACEHOLDER_SUFFIX}"


def error_text(message: str, user_id: str | None = None) -> str:
    """Render a user-facing failure, e.g. "❌ <@U123> Something broke"."""
    if user_id:
        return f"{ERROR_GLYPH} <@{user_id}> {message}"
    return f"{ERROR_GLYPH} {message}"


def build_system_prompt(knowledge_base_id: str | None = None, streaming: bool = False) -> str:
    """System prompt for the direct model backend.

    A knowledge base id is passed through as a hint; the direct model has no
    retrieval, so it is told not to invent results.
    """
    style = _STREAM_STYLE if streaming else _QUERY_STYLE
    if knowledge_base_id:
        return (
            f"{_PERSONA} You have access to knowledge base {knowledge_base_id}. {style} "
            "Do not make up information if nothing is found on the knowledge bases."
        )
    return f"{_PERSONA} {style}"
