"""Citation extraction for Bedrock Agent responses.

Agent chunks carry an ``attribution`` record with one or more citations, each
listing the retrieved references that back part of the generated text. This
module turns those records into flat ``Citation`` values and merges them into
a response's running list.
"""

from dataclasses import dataclass
from typing import Any

TITLE_PREVIEW_CHARS = 50
DEFAULT_TITLE = "Source document"

# (location key, uri field, source type) - checked in this order, first hit wins
LOCATION_VARIANTS = [
    ("s3Location", "uri", "s3"),
    ("webLocation", "url", "web"),
    ("confluenceLocation", "url", "confluence"),
    ("salesforceLocation", "url", "salesforce"),
    ("sharePointLocation", "url", "sharepoint"),
    ("kendraDocumentLocation", "uri", "kendra"),
]

SOURCE_TYPES = [source_type for _, _, source_type in LOCATION_VARIANTS] + ["unknown"]


@dataclass(frozen=True)
class Citation:
    """A source document backing part of an agent answer."""

    uri: str
    title: str
    source_type: str = "unknown"
    raw_attribution_part: Any = None


def _is_uri(value) -> bool:
    return isinstance(value, str) and bool(value)


def _resolve_location(location: dict) -> tuple:
    """Return (uri, source_type) for a reference location, or ("", None)."""
    if not isinstance(location, dict):
        return "", None

    for key, field, source_type in LOCATION_VARIANTS:
        variant = location.get(key)
        if isinstance(variant, dict) and _is_uri(variant.get(field)):
            return variant[field], source_type

    # Location types we don't know about yet (custom connectors etc.)
    known_keys = {key for key, _, _ in LOCATION_VARIANTS}
    for key, variant in location.items():
        if key in known_keys or not isinstance(variant, dict):
            continue
        for field in ("uri", "url"):
            if _is_uri(variant.get(field)):
                return variant[field], "unknown"

    return "", None


def _resolve_title(reference: dict) -> str:
    metadata = reference.get("metadata") or {}
    if isinstance(metadata, dict) and metadata.get("title"):
        return str(metadata["title"])

    content = reference.get("content") or {}
    text = content.get("text") if isinstance(content, dict) else None
    if isinstance(text, str) and text:
        return text[:TITLE_PREVIEW_CHARS] + "..."

    return DEFAULT_TITLE


def _dicts(value) -> list:
    """Dict items of a list field; anything that isn't a list counts as empty."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, dict)]


def _citation_entries(attribution) -> list:
    """Accept either an attribution record or its bare citations list."""
    if isinstance(attribution, dict):
        return _dicts(attribution.get("citations"))
    return _dicts(attribution)


def merge_citations(existing: list, batch) -> list:
    """Append citations from ``batch`` that aren't already in ``existing``.

    A citation counts as a duplicate when an earlier entry has the same URI
    OR the same title. Distinct documents that both fall back to the default
    title therefore collapse into one entry.

    Returns a new list; neither argument is modified.
    """
    merged = list(existing)
    for citation in batch:
        if any(c.uri == citation.uri or c.title == citation.title for c in merged):
            continue
        merged.append(citation)
    return merged


def extract_citations(attribution) -> list:
    """Normalize one attribution record into a list of unique citations.

    References without a resolvable URI are skipped. Missing titles fall back
    to a preview of the retrieved text, then to "Source document".
    """
    citations = []
    for entry in _citation_entries(attribution):
        generated_part = entry.get("generatedResponsePart")
        for reference in _dicts(entry.get("retrievedReferences")):
            uri, source_type = _resolve_location(reference.get("location"))
            if not uri:
                continue

            citation = Citation(
                uri=uri,
                title=_resolve_title(reference),
                source_type=source_type,
                raw_attribution_part=generated_part,
            )
            citations = merge_citations(citations, [citation])
    return citations
