"""Span resolution: many overlapping candidates in, one clean span list out.

Candidates arrive as the concatenation of every recognizer's output, in
recognizer registration order.  The result is sorted by ``start`` and no
two spans share a character, which is what the rewriter needs.

Conflicts are settled by, in order: higher score, longer span, earlier
position in the candidate list.  The losing span is dropped whole; the
winner's boundaries are never widened to cover it.
"""

from __future__ import annotations
import logging
from typing import Iterable, Sequence

from .types import Entity, RecognizerResult, to_entity

logger = logging.getLogger(__name__)


def _beats(
    challenger: tuple[int, RecognizerResult],
    holder: tuple[int, RecognizerResult],
) -> bool:
    """True if ``challenger`` should replace ``holder``."""
    c_pos, c = challenger
    h_pos, h = holder
    if c.score != h.score:
        return c.score > h.score
    if c.length != h.length:
        return c.length > h.length
    return c_pos < h_pos


def resolve_spans(
    candidates: Sequence[RecognizerResult],
    entities: Iterable[Entity | str] | None = None,
) -> list[RecognizerResult]:
    """Reduce candidates to a sorted, non-overlapping list.

    Args:
        candidates: Recognizer outputs, concatenated in registration order.
        entities: If given, only these entity types are considered.  The
            filter runs before overlap resolution so an unwanted span can
            never knock out a wanted one.
    """
    indexed = list(enumerate(candidates))
    if entities is not None:
        wanted = {to_entity(e) for e in entities}
        indexed = [(i, c) for i, c in indexed if c.entity_type in wanted]
    if not indexed:
        return []

    indexed.sort(key=lambda ic: (ic[1].start, -ic[1].score, ic[0]))

    accepted: list[tuple[int, RecognizerResult]] = [indexed[0]]
    for item in indexed[1:]:
        current = accepted[-1]
        if item[1].overlaps(current[1]):
            if _beats(item, current):
                accepted[-1] = item
            else:
                logger.debug(
                    "Dropping %s [%d, %d) overlapped by %s",
                    item[1].entity_type, item[1].start, item[1].end, current[1].entity_type,
                )
            continue
        accepted.append(item)

    return [c for _, c in accepted]
