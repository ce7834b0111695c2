"""Text rewriting: splice operator output into the original text.

Spans are applied right-to-left, so each splice only changes text after
the spans still waiting to be applied and their offsets stay valid.
Audit items report ORIGINAL-text positions.
"""

from __future__ import annotations
from typing import Callable, Sequence

from .errors import InvalidSpanError
from .operators import Operator
from .types import (
    AnonymizedItem, AnonymizerResult, Entity, OperatorConfig, RecognizerResult,
)

OperatorLookup = Callable[[Entity], tuple[OperatorConfig, Operator]]


def validate_spans(text: str, spans: Sequence[RecognizerResult]) -> list[RecognizerResult]:
    """Return spans sorted by start, or raise if they don't fit ``text``."""
    ordered = sorted(spans, key=lambda s: (s.start, s.end))
    previous: RecognizerResult | None = None
    for span in ordered:
        if span.end > len(text):
            raise InvalidSpanError(
                f"{span.entity_type} span [{span.start}, {span.end}) exceeds text length {len(text)}"
            )
        if text[span.start:span.end] != span.text:
            raise InvalidSpanError(
                f"{span.entity_type} span [{span.start}, {span.end}) does not match the text"
            )
        if previous is not None and previous.overlaps(span):
            raise InvalidSpanError(
                f"spans [{previous.start}, {previous.end}) and [{span.start}, {span.end}) overlap; "
                "resolve them before anonymizing"
            )
        previous = span
    return ordered


def rewrite_text(
    text: str,
    spans: Sequence[RecognizerResult],
    operator_for: OperatorLookup,
) -> AnonymizerResult:
    """Apply each span's operator and return the new text plus audit trail.

    All spans are validated and all operators looked up before the first
    splice, so a failure leaves nothing half-anonymized.
    """
    if not text or not spans:
        return AnonymizerResult(text=text, items=())

    ordered = validate_spans(text, spans)
    plan = [(span, *operator_for(span.entity_type)) for span in ordered]

    result = text
    items: list[AnonymizedItem] = []
    for span, config, operator in reversed(plan):
        replacement = operator.operate(span.text, span.entity_type)
        result = result[:span.start] + replacement + result[span.end:]
        items.append(AnonymizedItem(
            start=span.start,
            end=span.end,
            entity_type=span.entity_type,
            text=replacement,
            operator=config.type,
        ))
    items.reverse()

    return AnonymizerResult(text=result, items=tuple(items))
