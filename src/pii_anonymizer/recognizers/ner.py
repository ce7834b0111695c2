"""Model-based recognizer for unstructured PII (names, places, orgs, dates).

Wraps a token-classification model.  The model is a black box: given text
it yields tokens ``{entity, start, end, score, word}`` whose labels may
carry BIO prefixes (``B-PER``, ``I-PER``).  Consecutive tokens of the same
type are merged into one entity.

Usage:
    recognizer = NerRecognizer("dslim/bert-base-NER")
    await recognizer.initialize()        # optional, analyze() does it too
    results = await recognizer.analyze("Alice Smith lives in Paris")
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from ..errors import RecognizerError
from ..types import Entity, EntityType, RecognizerResult
from .base import Recognizer

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "dslim/bert-base-NER"
DEFAULT_TIMEOUT = 30.0

# Largest gap (one space) tolerated between an entity and its continuation
MAX_TOKEN_GAP = 1

LABEL_MAP: dict[str, EntityType] = {
    "PER": EntityType.PERSON,
    "PERSON": EntityType.PERSON,
    "LOC": EntityType.LOCATION,
    "LOCATION": EntityType.LOCATION,
    "GPE": EntityType.LOCATION,
    "ORG": EntityType.ORGANIZATION,
    "ORGANIZATION": EntityType.ORGANIZATION,
    "DATE": EntityType.DATE_TIME,
    "TIME": EntityType.DATE_TIME,
}

TokenClassifier = Callable[[str], Iterable[Mapping[str, Any]]]


@dataclass(frozen=True, slots=True)
class Token:
    """One labeled token from the classifier."""
    label: str
    start: int | None
    end: int | None
    score: float
    word: str = ""

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> Token:
        label = raw.get("entity") or raw.get("entity_group") or raw.get("label") or "O"
        return cls(
            label=str(label),
            start=raw.get("start"),
            end=raw.get("end"),
            score=float(raw.get("score", 0.0)),
            word=str(raw.get("word", "")),
        )


def split_label(label: str) -> tuple[str, str]:
    """'B-PER' -> ('B', 'PER'); 'PER' -> ('', 'PER')."""
    if len(label) > 2 and label[1] == "-" and label[0] in "BI":
        return label[0], label[2:]
    return "", label


@dataclass(slots=True)
class _OpenEntity:
    """Entity under construction; its end grows as tokens are merged."""
    entity_type: EntityType
    start: int
    end: int
    score: float

    def finish(self, text: str, source: str) -> RecognizerResult:
        return RecognizerResult(
            entity_type=self.entity_type,
            start=self.start,
            end=self.end,
            score=min(1.0, max(0.0, self.score)),
            text=text[self.start:self.end],
            source=source,
        )


def merge_tokens(
    text: str,
    tokens: Iterable[Mapping[str, Any] | Token],
    entities: Iterable[Entity] | None = None,
    *,
    source: str = "ner",
) -> list[RecognizerResult]:
    """Group labeled tokens into entity spans.

    A token extends the open entity when both map to the same type and
    either it is a ``B-`` token starting exactly where the entity ends
    (a split sub-word), or it is an ``I-``/unprefixed token at most
    ``MAX_TOKEN_GAP`` characters after it.  Score is the max over tokens.
    """
    wanted = set(entities) if entities is not None else None
    results: list[RecognizerResult] = []
    current: _OpenEntity | None = None

    def close() -> None:
        nonlocal current
        if current is not None:
            results.append(current.finish(text, source))
            current = None

    for raw in tokens:
        token = raw if isinstance(raw, Token) else Token.from_raw(raw)
        prefix, base = split_label(token.label)
        entity_type = LABEL_MAP.get(base.upper())

        if entity_type is None or (wanted is not None and entity_type not in wanted):
            close()
            continue
        if token.start is None or token.end is None or token.end <= token.start:
            logger.debug("Skipping %s token without usable offsets", base)
            close()
            continue

        if current is not None and current.entity_type == entity_type:
            gap = token.start - current.end
            if prefix == "B":
                contiguous = gap == 0
            else:
                contiguous = 0 <= gap <= MAX_TOKEN_GAP
            if contiguous:
                current.end = max(current.end, token.end)
                current.score = max(current.score, token.score)
                continue

        close()
        current = _OpenEntity(entity_type, token.start, token.end, token.score)

    close()
    return results


def _load_pipeline(model_name: str) -> TokenClassifier:
    """Build a Hugging Face token-classification pipeline."""
    from transformers import pipeline  # optional dependency

    return pipeline("token-classification", model=model_name)


class NerRecognizer(Recognizer):
    """Recognizer backed by a token-classification model.

    The model is loaded once.  Concurrent first calls wait on the same
    load.  ``analyze`` before ``initialize`` initializes on demand.
    """

    supported_entities = frozenset({
        EntityType.PERSON,
        EntityType.LOCATION,
        EntityType.ORGANIZATION,
        EntityType.DATE_TIME,
    })

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        *,
        classifier_factory: Callable[[str], TokenClassifier] | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        name: str = "ner",
    ) -> None:
        self.model_name = model_name
        self.name = name
        self.timeout = timeout
        self._factory = classifier_factory or _load_pipeline
        self._classifier: TokenClassifier | None = None
        self._init_lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    def _lock(self) -> asyncio.Lock:
        # An asyncio.Lock belongs to one loop; the instance may outlive it
        loop = asyncio.get_running_loop()
        if self._init_lock is None or self._lock_loop is not loop:
            self._init_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._init_lock

    @property
    def initialized(self) -> bool:
        return self._classifier is not None

    async def initialize(self) -> None:
        if self._classifier is not None:
            return
        async with self._lock():
            if self._classifier is not None:
                return
            logger.info("Loading NER model %s", self.model_name)
            self._classifier = await asyncio.to_thread(self._factory, self.model_name)
            logger.info("NER model %s loaded", self.model_name)

    async def analyze(
        self,
        text: str,
        entities: Iterable[Entity] | None = None,
    ) -> list[RecognizerResult]:
        if self._classifier is None:
            await self.initialize()
        classifier = self._classifier

        def classify() -> list[Mapping[str, Any]]:
            # The classifier may return a lazy iterator; drain it off the loop.
            return list(classifier(text))

        try:
            tokens = await asyncio.wait_for(asyncio.to_thread(classify), self.timeout)
        except asyncio.TimeoutError:
            raise RecognizerError(
                f"NER inference exceeded {self.timeout}s on {len(text)} characters"
            ) from None
        return merge_tokens(text, tokens, entities, source=self.name)
