"""Recognizer interface.

Every recognizer is async, including the regex ones, so the analyzer can
schedule all of them the same way.  Recognizers must not keep per-call
state: one instance serves concurrent ``analyze`` calls.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable

from ..types import Entity, RecognizerResult


class Recognizer(ABC):
    """Produces candidate PII spans for a subset of entity types."""

    name: str = "recognizer"
    supported_entities: frozenset[Entity] = frozenset()

    async def initialize(self) -> None:
        """One-time warm-up.  No-op unless the recognizer loads a model."""

    @abstractmethod
    async def analyze(
        self,
        text: str,
        entities: Iterable[Entity] | None = None,
    ) -> list[RecognizerResult]:
        """Return candidate spans, restricted to ``entities`` when given."""

    def supports(self, entities: Iterable[Entity] | None) -> bool:
        """True if this recognizer can emit any of ``entities`` (None = all)."""
        if entities is None:
            return True
        return not self.supported_entities.isdisjoint(entities)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
