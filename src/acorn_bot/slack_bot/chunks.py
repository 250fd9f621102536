"""Chunk classification for streamed AI responses.

The model backend streams bare strings. The agent backend streams tagged
dicts: ``{"type": "text" | "citations" | "complete", "content": ...}``.
``classify_chunk`` is the single place that looks at those raw shapes;
everything downstream works with ``NormalizedEvent``.
"""

from dataclasses import dataclass, field

from acorn_bot.slack_bot.citations import extract_citations

TEXT = "text"
CITATIONS = "citations"
COMPLETE = "complete"
IGNORED = "ignored"


@dataclass(frozen=True)
class NormalizedEvent:
    kind: str
    text_delta: str = ""
    citation_batch: list = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.kind == COMPLETE


def text_chunk(text: str) -> dict:
    return {"type": TEXT, "content": text}


def citations_chunk(attribution) -> dict:
    return {"type": CITATIONS, "content": attribution}


def complete_chunk(full_text: str = "") -> dict:
    return {"type": COMPLETE, "content": full_text}


def classify_chunk(chunk) -> NormalizedEvent:
    """Turn one raw chunk from either backend into a NormalizedEvent.

    Unknown shapes become IGNORED events rather than errors, and text chunks
    whose content is not a string carry no text.
    """
    if isinstance(chunk, str):
        return NormalizedEvent(kind=TEXT, text_delta=chunk)

    if not isinstance(chunk, dict):
        return NormalizedEvent(kind=IGNORED)

    chunk_type = chunk.get("type")
    if chunk_type == TEXT:
        content = chunk.get("content")
        return NormalizedEvent(kind=TEXT, text_delta=content if isinstance(content, str) else "")
    if chunk_type == CITATIONS:
        return NormalizedEvent(kind=CITATIONS, citation_batch=extract_citations(chunk.get("content")))
    if chunk_type == COMPLETE:
        return NormalizedEvent(kind=COMPLETE)

    return NormalizedEvent(kind=IGNORED)
