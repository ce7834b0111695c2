"""Regex-backed recognizer over the pattern catalog."""

from __future__ import annotations
from typing import Iterable

from ..patterns import DEFAULT_SPECS, PatternSpec, scan_patterns
from ..types import Entity, RecognizerResult
from .base import Recognizer


class PatternRecognizer(Recognizer):
    """Deterministic recognizer; resolves immediately."""

    def __init__(
        self,
        specs: Iterable[PatternSpec] = DEFAULT_SPECS,
        *,
        name: str = "pattern",
    ) -> None:
        self.specs: tuple[PatternSpec, ...] = tuple(specs)
        self.name = name
        self.supported_entities = frozenset(s.entity for s in self.specs)

    async def analyze(
        self,
        text: str,
        entities: Iterable[Entity] | None = None,
    ) -> list[RecognizerResult]:
        return scan_patterns(text, entities, self.specs, self.name)
