"""Core types."""

from __future__ import annotations
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Union

from .errors import ConfigurationError


class EntityType(str, Enum):
    """Closed vocabulary of entity tags."""
    PERSON = "PERSON"
    EMAIL_ADDRESS = "EMAIL_ADDRESS"
    PHONE_NUMBER = "PHONE_NUMBER"
    CREDIT_CARD = "CREDIT_CARD"
    LOCATION = "LOCATION"
    DATE_TIME = "DATE_TIME"
    IP_ADDRESS = "IP_ADDRESS"
    URL = "URL"
    US_SSN = "US_SSN"
    ORGANIZATION = "ORGANIZATION"
    IBAN_CODE = "IBAN_CODE"
    NRP = "NRP"                    # nationality, religious, political group
    MEDICAL_LICENSE = "MEDICAL_LICENSE"
    US_DRIVER_LICENSE = "US_DRIVER_LICENSE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CustomEntity:
    """An entity tag outside the built-in vocabulary, e.g. EMPLOYEE_ID."""
    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("custom entity name must be non-empty")
        object.__setattr__(self, "name", self.name.strip().upper())

    @property
    def value(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


Entity = Union[EntityType, CustomEntity]


def to_entity(value: str | EntityType | CustomEntity) -> Entity:
    """Normalize a tag to an EntityType member, or a CustomEntity if unknown."""
    if isinstance(value, (EntityType, CustomEntity)):
        return value
    tag = value.strip().upper()
    try:
        return EntityType(tag)
    except ValueError:
        return CustomEntity(tag)


@dataclass(frozen=True, slots=True)
class RecognizerResult:
    """A single detected PII span."""
    entity_type: Entity
    start: int
    end: int
    score: float           # 0.0–1.0 confidence
    text: str              # original_text[start:end]
    source: str = ""       # name of the recognizer that produced it

    def __post_init__(self) -> None:
        if not isinstance(self.entity_type, (EntityType, CustomEntity)):
            object.__setattr__(self, "entity_type", to_entity(self.entity_type))
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score {self.score} outside [0, 1]")
        if len(self.text) != self.end - self.start:
            raise ValueError("text length does not match span length")

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: RecognizerResult) -> bool:
        return self.start < other.end and self.end > other.start

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type.value,
            "start": self.start,
            "end": self.end,
            "score": self.score,
            "text": self.text,
            "source": self.source,
        }


class OperatorType(str, Enum):
    REDACT = "redact"
    REPLACE = "replace"
    MASK = "mask"
    HASH = "hash"
    ENCRYPT = "encrypt"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    """How to anonymize one entity type.

    Only the fields relevant to ``type`` are read; the rest are ignored.
    """
    type: OperatorType = OperatorType.REDACT
    new_value: str | None = None          # redact / replace
    masking_char: str = "*"               # mask
    chars_to_mask: int | None = None      # mask; None masks everything
    from_end: bool = False                # mask
    hash_algorithm: str = "sha256"        # hash
    hash_length: int | None = None        # hash; truncate hex digest
    key: str | bytes | None = field(default=None, repr=False)  # encrypt

    def __post_init__(self) -> None:
        if not isinstance(self.type, OperatorType):
            try:
                object.__setattr__(self, "type", OperatorType(str(self.type).lower()))
            except ValueError:
                raise ConfigurationError(f"Unsupported operator type: {self.type!r}") from None
        for name in ("chars_to_mask", "hash_length"):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("masking_char", "hash_algorithm"):
            if not isinstance(getattr(self, name), str):
                raise ConfigurationError(f"{name} must be a string, got {getattr(self, name)!r}")
        if self.new_value is not None and not isinstance(self.new_value, str):
            raise ConfigurationError(f"new_value must be a string, got {self.new_value!r}")
        if self.key is not None and not isinstance(self.key, (str, bytes)):
            raise ConfigurationError("key must be a string or bytes")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OperatorConfig:
        """Build a config from a plain mapping (YAML / JSON)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown operator option(s): {', '.join(sorted(unknown))}")
        return cls(**dict(data))


@dataclass(frozen=True, slots=True)
class AnonymizedItem:
    """One replacement in the audit trail.

    ``start``/``end`` are positions in the original text; ``text`` is the
    replacement that was inserted.
    """
    start: int
    end: int
    entity_type: Entity
    text: str
    operator: OperatorType

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["entity_type"] = self.entity_type.value
        d["operator"] = self.operator.value
        return d


@dataclass(frozen=True, slots=True)
class AnonymizerResult:
    """Result of anonymizing a text."""
    text: str
    items: tuple[AnonymizedItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "items": [i.to_dict() for i in self.items]}
