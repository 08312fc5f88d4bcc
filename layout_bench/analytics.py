"""
Derived metrics over nested user documents.

``transform`` walks a decoded document and returns a new tree carrying up to
four derived blocks:

- ``profile.statistics.engagement_rate``
- ``metadata.tag_analysis``
- ``profile.total_achievement_points``
- ``profile.bio_analysis``

Each block is computed only when the substructure it reads is present with the
expected type; otherwise that block is left out and the rest still apply. The
input tree is never mutated: containers along each written path are copied.

Usage:
    from layout_bench.analytics import process

    outcome = process(raw_documents)
    outcome.documents, outcome.dropped
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TypedDict, Union

from layout_bench.domain.errors import ParseError
from layout_bench.utils.logging import get_logger

log = get_logger(__name__)

# Unicode White_Space only; str.split also breaks on the U+001C..U+001F separators.
_WORD = re.compile("[^\t-\r \x85\xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+")

PROCESSING_STEPS = (
    "engagement_calculation",
    "tag_analysis",
    "achievement_aggregation",
    "text_analysis",
)


class TagAnalysis(TypedDict):
    total_tags: int
    verified_tags: int
    verification_rate: float


class BioAnalysis(TypedDict):
    word_count: int
    char_count: int
    sentence_count: int
    avg_words_per_sentence: float


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _get_in(tree: Any, path: Sequence[str]) -> Optional[Any]:
    node = tree
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node


def _assoc_in(tree: Mapping[str, Any], path: Sequence[str], value: Any) -> Dict[str, Any]:
    """Return a copy of ``tree`` with ``value`` set at ``path``; only the path is copied."""
    head, rest = path[0], path[1:]
    updated = dict(tree)
    if rest:
        child = tree.get(head)
        updated[head] = _assoc_in(child if isinstance(child, Mapping) else {}, rest, value)
    else:
        updated[head] = value
    return updated


def engagement_rate(posts_count: int, followers_count: int) -> float:
    """Posts per follower as a percentage; 0 when there are no followers."""
    if followers_count == 0:
        return 0.0
    return posts_count / followers_count * 100


def tag_analysis(tags: Sequence[Any]) -> TagAnalysis:
    """Count tags and the entries exactly equal to ``"verified"``."""
    total = len(tags)
    verified = sum(1 for tag in tags if tag == "verified")
    return TagAnalysis(
        total_tags=total,
        verified_tags=verified,
        verification_rate=verified / total * 100 if total else 0.0,
    )


def total_achievement_points(achievements: Sequence[Any]) -> int:
    """Sum of ``points`` over achievements; entries without integer points add 0."""
    total = 0
    for achievement in achievements:
        points = achievement.get("points") if isinstance(achievement, Mapping) else None
        if _is_count(points):
            total += points
    return total


def bio_analysis(bio: str) -> BioAnalysis:
    """
    Word, character and sentence counts for a bio.

    Sentences are counted as ``.`` characters; this is not real segmentation.
    """
    word_count = len(_WORD.findall(bio))
    sentence_count = bio.count(".")
    return BioAnalysis(
        word_count=word_count,
        char_count=len(bio),
        sentence_count=sentence_count,
        avg_words_per_sentence=word_count / sentence_count if sentence_count else 0.0,
    )


def transform(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``doc`` with every derivable metric attached.
    """
    result: Dict[str, Any] = dict(doc)

    posts = _get_in(doc, ("profile", "statistics", "posts_count"))
    followers = _get_in(doc, ("profile", "statistics", "followers_count"))
    if _is_count(posts) and _is_count(followers):
        result = _assoc_in(
            result,
            ("profile", "statistics", "engagement_rate"),
            engagement_rate(posts, followers),
        )

    tags = _get_in(doc, ("metadata", "tags"))
    if isinstance(tags, list):
        result = _assoc_in(result, ("metadata", "tag_analysis"), tag_analysis(tags))

    achievements = _get_in(doc, ("profile", "achievements"))
    if isinstance(achievements, list):
        result = _assoc_in(
            result,
            ("profile", "total_achievement_points"),
            total_achievement_points(achievements),
        )

    bio = _get_in(doc, ("profile", "bio"))
    if isinstance(bio, str):
        result = _assoc_in(result, ("profile", "bio_analysis"), bio_analysis(bio))

    return result


def decode(raw: Union[str, bytes, Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Parse one stored document into a tree.

    Raises
    ------
    ParseError
        If the payload is not JSON or its top level is not an object.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"document is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"document top level is {type(payload).__name__}, expected object")
    return payload


@dataclass
class ProcessingOutcome:
    """Transformed documents plus the number of records that failed to decode."""

    documents: List[Dict[str, Any]] = field(default_factory=list)
    dropped: int = 0

    @property
    def processed(self) -> int:
        return len(self.documents)


def process(raws: Iterable[Union[str, bytes, Mapping[str, Any]]]) -> ProcessingOutcome:
    """
    Decode and transform a batch of stored documents.

    Records that cannot be decoded are dropped and counted, never replaced by
    a default value.
    """
    outcome = ProcessingOutcome()
    for position, raw in enumerate(raws):
        try:
            doc = decode(raw)
        except ParseError as exc:
            outcome.dropped += 1
            log.debug("Dropped undecodable document", extra={"position": position, "error": str(exc)})
            continue
        outcome.documents.append(transform(doc))
    if outcome.dropped:
        log.warning(
            f"{outcome.dropped} document(s) dropped during analytics",
            extra={"dropped": outcome.dropped, "processed": outcome.processed},
        )
    return outcome


def processing_details() -> Dict[str, str]:
    return {step: "completed" for step in PROCESSING_STEPS}


__all__ = [
    "BioAnalysis",
    "PROCESSING_STEPS",
    "ProcessingOutcome",
    "TagAnalysis",
    "bio_analysis",
    "decode",
    "engagement_rate",
    "process",
    "processing_details",
    "tag_analysis",
    "total_achievement_points",
    "transform",
]
