"""Presidio-backed recognizer (optional).

Uses Presidio's AnalyzerEngine with a spaCy NLP engine.  Useful when the
transformer model is not available or as a second opinion on names,
organizations and locations; the resolver reconciles its output with the
other recognizers.
"""

from __future__ import annotations
import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Iterable

from ..types import Entity, EntityType, RecognizerResult, to_entity
from .base import Recognizer

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

logger = logging.getLogger(__name__)

# One engine per language; spaCy models are expensive to load
_engines: dict[str, AnalyzerEngine] = {}
_engines_lock = threading.Lock()


def _get_engine(language: str = "en") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine for a language."""
    with _engines_lock:
        if language not in _engines:
            from presidio_analyzer import AnalyzerEngine
            from presidio_analyzer.nlp_engine import NlpEngineProvider

            logger.info("Loading Presidio engine for %r", language)
            provider = NlpEngineProvider(nlp_configuration={
                "nlp_engine_name": "spacy",
                "models": [{"lang_code": language, "model_name": f"{language}_core_web_sm"}],
            })
            _engines[language] = AnalyzerEngine(
                nlp_engine=provider.create_engine(),
                supported_languages=[language],
            )
        return _engines[language]


# Entity types requested from Presidio (its full set is much larger)
DEFAULT_ENTITIES: tuple[EntityType, ...] = (
    EntityType.PERSON,
    EntityType.ORGANIZATION,
    EntityType.LOCATION,
    EntityType.NRP,
    EntityType.MEDICAL_LICENSE,
    EntityType.US_DRIVER_LICENSE,
    EntityType.DATE_TIME,
)


class PresidioRecognizer(Recognizer):
    """Runs Presidio in a worker thread and converts its results."""

    def __init__(
        self,
        *,
        language: str = "en",
        entities: Iterable[Entity] = DEFAULT_ENTITIES,
        name: str = "presidio",
    ) -> None:
        self.language = language
        self.name = name
        self.supported_entities = frozenset(to_entity(e) for e in entities)

    async def initialize(self) -> None:
        await asyncio.to_thread(_get_engine, self.language)

    async def analyze(
        self,
        text: str,
        entities: Iterable[Entity] | None = None,
    ) -> list[RecognizerResult]:
        wanted = self.supported_entities if entities is None else (
            self.supported_entities & set(entities)
        )
        if not wanted:
            return []
        return await asyncio.to_thread(self._scan, text, sorted(e.value for e in wanted))

    def _scan(self, text: str, entity_names: list[str]) -> list[RecognizerResult]:
        engine = _get_engine(self.language)
        results = engine.analyze(text=text, language=self.language, entities=entity_names)
        matches: list[RecognizerResult] = []
        for r in results:
            if r.end <= r.start:
                continue
            matches.append(RecognizerResult(
                entity_type=to_entity(r.entity_type),
                start=r.start,
                end=r.end,
                score=min(1.0, max(0.0, float(r.score))),
                text=text[r.start:r.end],
                source=self.name,
            ))
        return sorted(matches, key=lambda m: m.start)
