"""Response formatting utilities for Acorn.

Renders citation lists and status details as Slack mrkdwn.
"""

CITATION_GLYPHS = {
    "s3": "📄",
    "web": "🌐",
    "confluence": "📝",
    "salesforce": "⚡",
    "sharepoint": "📊",
    "kendra": "🔍",
}
DEFAULT_GLYPH = "📋"

SOURCES_HEADER = "\n\n📚 *Sources:*\n"


def get_citation_glyph(source_type: str) -> str:
    """Get the emoji shown in front of a citation of the given type."""
    return CITATION_GLYPHS.get(source_type, DEFAULT_GLYPH)


def format_sources(citations: list) -> str:
    """Format citations as a numbered "Sources" section.

    Returns an empty string when there are no citations so callers can
    append the result unconditionally.
    """
    if not citations:
        return ""

    lines = [SOURCES_HEADER]
    for index, citation in enumerate(citations, start=1):
        glyph = get_citation_glyph(citation.source_type)
        lines.append(f"{index}. {glyph} {citation.title}\n   {citation.uri}\n")
    return "".join(lines)


def format_kb_list(knowledge_base_ids: list) -> str:
    """List configured knowledge bases with their ids partially masked."""
    if not knowledge_base_ids:
        return "No knowledge bases configured"
    return "\n".join(f"{i}. {kb_id[:8]}...{kb_id[-4:]}" for i, kb_id in enumerate(knowledge_base_ids, start=1))


def format_uptime(seconds: float) -> str:
    return f"{int(seconds // 60)} minutes {int(seconds % 60)} seconds"
