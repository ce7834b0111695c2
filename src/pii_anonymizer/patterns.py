"""Regex catalog for structured PII.

These are deterministic and near-zero cost.  They catch emails, phones,
credit cards, SSNs, IPs, URLs and IBANs.  Each entity has one or more
patterns, a base score, a list of context words that boost the score when
they appear near a match, and an optional checksum validator.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .types import Entity, EntityType, RecognizerResult

CONTEXT_WINDOW = 50      # characters either side of a match
CONTEXT_BOOST = 0.1
MAX_BOOSTED_SCORE = 0.95

SOURCE = "pattern"


def luhn_checksum(number: str) -> bool:
    """Validate a card number with the Luhn algorithm (separators ignored)."""
    digits = [int(d) for d in re.sub(r"\D", "", number)]
    if not 13 <= len(digits) <= 19:
        return False
    total = 0
    for i, digit in enumerate(reversed(digits)):
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def iban_checksum(iban: str) -> bool:
    """Validate an IBAN with the ISO 7064 mod-97 check."""
    compact = iban.replace(" ", "").upper()
    if not 15 <= len(compact) <= 34 or not compact.isalnum():
        return False
    rearranged = compact[4:] + compact[:4]
    # A=10 … Z=35
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97 == 1


@dataclass(frozen=True)
class PatternSpec:
    """Detection rules for one entity type."""
    entity: Entity
    patterns: tuple[re.Pattern, ...]
    score: float
    context: tuple[str, ...] = ()
    validator: Callable[[str], bool] | None = None
    # On a failed check, retry with trailing space-separated groups removed
    shrink_on_reject: bool = False
    _context_re: re.Pattern | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.context:
            words = "|".join(re.escape(w) for w in self.context)
            object.__setattr__(
                self, "_context_re", re.compile(rf"\b(?:{words})\b", re.IGNORECASE)
            )

    def score_match(self, text: str, start: int, end: int) -> float:
        """Base score, boosted when a context word is within the window."""
        if self._context_re is None:
            return self.score
        window = text[max(0, start - CONTEXT_WINDOW):end + CONTEXT_WINDOW]
        if self._context_re.search(window):
            return round(min(MAX_BOOSTED_SCORE, self.score + CONTEXT_BOOST), 4)
        return self.score

    def _validated(self, match: str) -> str | None:
        """The longest acceptable prefix of ``match``, or None."""
        if self.validator is None or self.validator(match):
            return match
        if not self.shrink_on_reject:
            return None
        candidate = match
        while " " in candidate:
            candidate = candidate.rsplit(" ", 1)[0]
            if self.validator(candidate):
                return candidate
        return None

    def find(self, text: str, source: str = SOURCE) -> list[RecognizerResult]:
        results: list[RecognizerResult] = []
        seen: set[tuple[int, int]] = set()
        for pattern in self.patterns:
            for m in pattern.finditer(text):
                if m.start() == m.end():
                    continue
                value = self._validated(m.group())
                if value is None:
                    continue
                start, end = m.start(), m.start() + len(value)
                if (start, end) in seen:
                    continue
                seen.add((start, end))
                results.append(RecognizerResult(
                    entity_type=self.entity,
                    start=start,
                    end=end,
                    score=self.score_match(text, start, end),
                    text=value,
                    source=source,
                ))
        return sorted(results, key=lambda r: r.start)


EMAIL = PatternSpec(
    EntityType.EMAIL_ADDRESS,
    (re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),),
    0.90,
    context=("email", "e-mail", "mail", "contact"),
)

PHONE = PatternSpec(
    EntityType.PHONE_NUMBER,
    (
        # North American: 555-123-4567, (555) 123-4567, +1 555.123.4567
        re.compile(
            r"(?<![\w+])(?:\+?1[\-.\s]?)?\(?\d{3}\)?[\-.\s]?\d{3}[\-.\s]?\d{4}\b"
        ),
        # International with country code: +44 20 7946 0958
        re.compile(
            r"(?<![\w+])\+\d{1,3}[\-.\s]?\d{2,4}[\-.\s]?\d{3,4}[\-.\s]?\d{3,4}\b"
        ),
    ),
    0.85,
    context=("phone", "tel", "telephone", "mobile", "cell", "call", "fax"),
)

CREDIT_CARD = PatternSpec(
    EntityType.CREDIT_CARD,
    (re.compile(r"\b(?:\d{4}[\-\s]?){3}\d{4}\b"),),
    0.80,
    context=("card", "credit", "visa", "mastercard", "amex", "payment"),
    validator=luhn_checksum,
)

SSN = PatternSpec(
    EntityType.US_SSN,
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),),
    0.90,
    context=("ssn", "social security"),
)

IP_ADDRESS = PatternSpec(
    EntityType.IP_ADDRESS,
    (re.compile(
        r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}"
        r"(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b"
    ),),
    0.85,
    context=("ip", "server", "host", "address"),
)

URL = PatternSpec(
    EntityType.URL,
    (
        re.compile(r"\bhttps?://[^\s<>\"']+[^\s<>\"'.,;:!?)\]]", re.IGNORECASE),
        re.compile(r"(?<![/.\w])www\.[^\s<>\"']+[^\s<>\"'.,;:!?)\]]", re.IGNORECASE),
    ),
    0.90,
    context=("url", "link", "website", "site"),
)

IBAN = PatternSpec(
    EntityType.IBAN_CODE,
    (
        re.compile(r"\b[A-Z]{2}\d{2}[A-Z0-9]{11,30}\b"),
        # Printed form in groups of four: GB82 WEST 1234 5698 7654 32
        re.compile(r"\b[A-Z]{2}\d{2}(?: [A-Z0-9]{4}){2,7}(?: [A-Z0-9]{1,3})?\b"),
    ),
    0.85,
    context=("iban", "bank", "account"),
    validator=iban_checksum,
    shrink_on_reject=True,
)

DEFAULT_SPECS: tuple[PatternSpec, ...] = (
    EMAIL, PHONE, CREDIT_CARD, SSN, IP_ADDRESS, URL, IBAN,
)


def recognize_email(text: str) -> list[RecognizerResult]:
    return EMAIL.find(text)


def recognize_phone(text: str) -> list[RecognizerResult]:
    return PHONE.find(text)


def recognize_credit_card(text: str) -> list[RecognizerResult]:
    """Card numbers that pass the Luhn check; failing candidates are dropped."""
    return CREDIT_CARD.find(text)


def recognize_ssn(text: str) -> list[RecognizerResult]:
    return SSN.find(text)


def recognize_ip_address(text: str) -> list[RecognizerResult]:
    return IP_ADDRESS.find(text)


def recognize_url(text: str) -> list[RecognizerResult]:
    return URL.find(text)


def recognize_iban(text: str) -> list[RecognizerResult]:
    return IBAN.find(text)


def scan_patterns(
    text: str,
    entities: Iterable[Entity] | None = None,
    specs: Iterable[PatternSpec] = DEFAULT_SPECS,
    source: str = SOURCE,
) -> list[RecognizerResult]:
    """Run the catalog against text.

    Matches of different entity types may overlap; reconciling them is
    the resolver's job.
    """
    wanted = set(entities) if entities is not None else None
    matches: list[RecognizerResult] = []
    for spec in specs:
        if wanted is not None and spec.entity not in wanted:
            continue
        matches.extend(spec.find(text, source))
    return matches
