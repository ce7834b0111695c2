"""Anonymizer — rewrite text given resolved analyzer results.

Usage:
    anonymizer = Anonymizer()                       # REDACT by default
    result = anonymizer.anonymize(text, results, {
        EntityType.CREDIT_CARD: OperatorConfig(OperatorType.MASK, chars_to_mask=12),
    })
    result.text    # "Card ************1111, mail <EMAIL_ADDRESS>"
    result.items   # one AnonymizedItem per span, in original order

Operator lookup per entity: the per-call mapping, then operators set on the
engine for that entity, then the per-call default, then the engine default.
"""

from __future__ import annotations
from typing import Mapping, Sequence

from .operators import Operator, create_operator
from .rewriter import rewrite_text
from .types import (
    AnonymizerResult, Entity, OperatorConfig, OperatorType, RecognizerResult, to_entity,
)


class Anonymizer:
    """Applies operators to detected spans."""

    def __init__(
        self,
        default_operator: OperatorConfig | None = None,
        operators_by_entity: Mapping[Entity | str, OperatorConfig] | None = None,
    ) -> None:
        self._default = self._prepare(default_operator or OperatorConfig(OperatorType.REDACT))
        self._by_entity: dict[Entity, tuple[OperatorConfig, Operator]] = {}
        for entity, config in (operators_by_entity or {}).items():
            self.add_operator_for_entity(entity, config)

    @staticmethod
    def _prepare(config: OperatorConfig) -> tuple[OperatorConfig, Operator]:
        # Building the operator validates the config up front.
        return config, create_operator(config)

    @property
    def default_operator(self) -> OperatorConfig:
        return self._default[0]

    def set_default_operator(self, config: OperatorConfig) -> None:
        self._default = self._prepare(config)

    def add_operator_for_entity(self, entity: Entity | str, config: OperatorConfig) -> None:
        self._by_entity[to_entity(entity)] = self._prepare(config)

    def anonymize(
        self,
        text: str,
        results: Sequence[RecognizerResult],
        operators: Mapping[Entity | str, OperatorConfig] | None = None,
        default_operator: OperatorConfig | None = None,
    ) -> AnonymizerResult:
        """Replace each span in ``results`` and return text + audit items.

        ``results`` must be non-overlapping spans of ``text`` (what
        ``Analyzer.analyze`` returns).  ``default_operator`` applies to
        entities with no operator of their own, for this call only.
        Raises ConfigurationError or InvalidSpanError before changing
        anything.
        """
        overrides = {
            to_entity(entity): self._prepare(config)
            for entity, config in (operators or {}).items()
        }
        fallback = self._prepare(default_operator) if default_operator is not None else self._default

        def operator_for(entity: Entity) -> tuple[OperatorConfig, Operator]:
            if entity in overrides:
                return overrides[entity]
            return self._by_entity.get(entity, fallback)

        return rewrite_text(text, results, operator_for)
