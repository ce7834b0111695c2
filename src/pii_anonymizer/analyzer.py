"""Analyzer — detect PII spans.  Regex recognizers always, plus an NER model.

Usage:
    from pii_anonymizer import Analyzer, AnalyzerConfig

    analyzer = Analyzer(AnalyzerConfig(use_model_recognizer=False))
    results = await analyzer.analyze("Email me at john@acme.com")
    # [RecognizerResult(entity_type=EMAIL_ADDRESS, start=12, end=25, ...)]

Every recognizer runs over the same text; one recognizer failing is logged
and skipped without failing the call.  The combined candidates go through
the resolver, so the result is sorted and free of overlaps.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .recognizers.base import Recognizer
from .recognizers.ner import DEFAULT_MODEL, DEFAULT_TIMEOUT, NerRecognizer
from .recognizers.pattern import PatternRecognizer
from .resolver import resolve_spans
from .types import Entity, RecognizerResult, to_entity

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerConfig:
    """Configuration for the Analyzer."""
    use_model_recognizer: bool = True     # enable the NER model
    model_name: str = DEFAULT_MODEL
    model_timeout: float | None = DEFAULT_TIMEOUT   # seconds per inference
    use_presidio: bool = False            # add a Presidio/spaCy recognizer
    language: str = "en"                  # Presidio language
    score_threshold: float = 0.35         # drop candidates scoring below this
    # Entity types to always skip (e.g. don't report dates)
    skip_types: set[str] = field(default_factory=set)
    # Allow-list: values that should NEVER be reported
    allow_list: set[str] = field(default_factory=set)
    custom_recognizers: list[Recognizer] = field(default_factory=list)


class Analyzer:
    """Runs recognizers over text and resolves their candidates."""

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        *,
        recognizers: Iterable[Recognizer] | None = None,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self._skip = {to_entity(t) for t in self.config.skip_types}
        if recognizers is not None:
            self._recognizers = list(recognizers)
        else:
            self._recognizers = self._default_recognizers()

    def _default_recognizers(self) -> list[Recognizer]:
        recognizers: list[Recognizer] = [PatternRecognizer()]
        if self.config.use_model_recognizer:
            recognizers.append(NerRecognizer(
                self.config.model_name, timeout=self.config.model_timeout,
            ))
        if self.config.use_presidio:
            from .recognizers.presidio import PresidioRecognizer
            recognizers.append(PresidioRecognizer(language=self.config.language))
        recognizers.extend(self.config.custom_recognizers)
        return recognizers

    @property
    def recognizers(self) -> tuple[Recognizer, ...]:
        return tuple(self._recognizers)

    def add_recognizer(self, recognizer: Recognizer) -> None:
        """Register a recognizer; it ranks after those already registered."""
        self._recognizers.append(recognizer)

    def supported_entities(self) -> list[Entity]:
        seen: dict[Entity, None] = {}
        for r in self._recognizers:
            for e in sorted(r.supported_entities, key=lambda e: e.value):
                seen.setdefault(e, None)
        return list(seen)

    async def initialize(self) -> None:
        """Warm up recognizers that load models.  Safe to call repeatedly."""
        await asyncio.gather(*(r.initialize() for r in self._recognizers))

    async def analyze(
        self,
        text: str,
        entities: Iterable[Entity | str] | None = None,
    ) -> list[RecognizerResult]:
        """Detect PII in text.

        Returns resolved spans sorted by start.  Blank text returns ``[]``
        without running any recognizer.
        """
        if not text or not text.strip():
            return []

        wanted = {to_entity(e) for e in entities} if entities is not None else None
        active = [r for r in self._recognizers if r.supports(wanted)]

        batches = await asyncio.gather(*(self._run(r, text, wanted) for r in active))
        candidates = [c for batch in batches for c in batch]

        # --- Filter before resolving so a discarded span can't win an overlap ---
        kept: list[RecognizerResult] = []
        for c in candidates:
            if c.entity_type in self._skip:
                continue
            if c.text in self.config.allow_list:
                continue
            if c.score < self.config.score_threshold:
                continue
            kept.append(c)

        resolved = resolve_spans(kept, wanted)
        logger.debug(
            "Analyzed %d chars: %d candidates, %d kept, %d resolved",
            len(text), len(candidates), len(kept), len(resolved),
        )
        return resolved

    async def _run(
        self,
        recognizer: Recognizer,
        text: str,
        entities: set[Entity] | None,
    ) -> list[RecognizerResult]:
        try:
            return await recognizer.analyze(text, entities)
        except Exception:
            logger.exception("Recognizer %s failed; excluding it from this call", recognizer.name)
            return []
