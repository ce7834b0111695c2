"""Anonymization operators.

Each operator is built from an ``OperatorConfig`` and turns one span's
original text into its replacement.  Configuration is validated when the
operator is constructed, so a bad config fails before any text is touched.

    op = create_operator(OperatorConfig(OperatorType.MASK, chars_to_mask=4, from_end=True))
    op.operate("4111111111111111", EntityType.CREDIT_CARD)   # '411111111111****'
"""

from __future__ import annotations
import base64
import binascii
import hashlib
import os
from abc import ABC, abstractmethod

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import ConfigurationError
from .types import Entity, OperatorConfig, OperatorType

HASH_ALGORITHMS = ("md5", "sha256", "sha512")
AES_KEY_SIZES = (16, 24, 32)     # AES-128 / 192 / 256
NONCE_SIZE = 12


def redaction_tag(entity: Entity) -> str:
    return f"<{entity.value}>"


class Operator(ABC):
    """Turns a span's original text into its replacement."""

    operator_type: OperatorType

    def __init__(self, config: OperatorConfig) -> None:
        self.config = config

    @abstractmethod
    def operate(self, text: str, entity: Entity) -> str:
        """Return the replacement for ``text``, a span of type ``entity``."""


class RedactOperator(Operator):
    """``<ENTITY_TYPE>``, or ``new_value`` (possibly empty) if configured."""

    operator_type = OperatorType.REDACT

    def operate(self, text: str, entity: Entity) -> str:
        if self.config.new_value is not None:
            return self.config.new_value
        return redaction_tag(entity)


class ReplaceOperator(Operator):
    """``new_value``; falls back to the redaction tag when unset."""

    operator_type = OperatorType.REPLACE

    def operate(self, text: str, entity: Entity) -> str:
        if self.config.new_value is not None:
            return self.config.new_value
        return redaction_tag(entity)


class MaskOperator(Operator):
    """Overwrite characters with ``masking_char``.

    ``chars_to_mask=None`` masks the whole span, as does any count at or
    beyond its length.  ``0`` masks nothing.
    """

    operator_type = OperatorType.MASK

    def __init__(self, config: OperatorConfig) -> None:
        super().__init__(config)
        if not isinstance(config.masking_char, str) or len(config.masking_char) != 1:
            raise ConfigurationError(
                f"masking_char must be a single character, got {config.masking_char!r}"
            )
        if config.chars_to_mask is not None and config.chars_to_mask < 0:
            raise ConfigurationError(
                f"chars_to_mask must be >= 0, got {config.chars_to_mask}"
            )

    def operate(self, text: str, entity: Entity) -> str:
        n = self.config.chars_to_mask
        char = self.config.masking_char
        if n is None or n >= len(text):
            return char * len(text)
        if n == 0:
            return text
        if self.config.from_end:
            return text[:len(text) - n] + char * n
        return char * n + text[n:]


class HashOperator(Operator):
    """Hex digest of the span's UTF-8 bytes, optionally truncated."""

    operator_type = OperatorType.HASH

    def __init__(self, config: OperatorConfig) -> None:
        super().__init__(config)
        algorithm = config.hash_algorithm.lower()
        if algorithm not in HASH_ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported hash algorithm {config.hash_algorithm!r}; "
                f"expected one of {', '.join(HASH_ALGORITHMS)}"
            )
        self.algorithm = algorithm
        digest_len = hashlib.new(algorithm).digest_size * 2
        length = config.hash_length
        if length is not None and not 0 < length <= digest_len:
            raise ConfigurationError(
                f"hash_length must be between 1 and {digest_len} for {algorithm}"
            )
        self.length = length

    def operate(self, text: str, entity: Entity) -> str:
        digest = hashlib.new(self.algorithm, text.encode("utf-8")).hexdigest()
        return digest[:self.length] if self.length else digest


def _key_bytes(key: str | bytes | None) -> bytes:
    if key is None or key == "" or key == b"":
        raise ConfigurationError("Encryption key is required for the encrypt operator")
    raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    if len(raw) not in AES_KEY_SIZES:
        raise ConfigurationError(
            f"Encryption key must be 16, 24 or 32 bytes, got {len(raw)}"
        )
    return raw


class EncryptOperator(Operator):
    """AES-GCM encryption; output is urlsafe base64 of nonce + ciphertext.

    Reverse with :func:`decrypt` and the same key.
    """

    operator_type = OperatorType.ENCRYPT

    def __init__(self, config: OperatorConfig) -> None:
        super().__init__(config)
        self._aead = AESGCM(_key_bytes(config.key))

    def operate(self, text: str, entity: Entity) -> str:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, text.encode("utf-8"), None)
        return base64.urlsafe_b64encode(nonce + sealed).decode("ascii")


def decrypt(token: str, key: str | bytes) -> str:
    """Recover the original text from an :class:`EncryptOperator` output.

    Raises ValueError if the token is malformed or was not produced with
    this key.
    """
    aead = AESGCM(_key_bytes(key))
    try:
        blob = base64.urlsafe_b64decode(token.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError("malformed encrypted token") from e
    if len(blob) <= NONCE_SIZE:
        raise ValueError("malformed encrypted token")
    try:
        plain = aead.decrypt(blob[:NONCE_SIZE], blob[NONCE_SIZE:], None)
    except InvalidTag:
        raise ValueError("encrypted token failed authentication") from None
    return plain.decode("utf-8")


_OPERATORS: dict[OperatorType, type[Operator]] = {
    OperatorType.REDACT: RedactOperator,
    OperatorType.REPLACE: ReplaceOperator,
    OperatorType.MASK: MaskOperator,
    OperatorType.HASH: HashOperator,
    OperatorType.ENCRYPT: EncryptOperator,
}


def create_operator(config: OperatorConfig) -> Operator:
    """Build and validate the operator for ``config``."""
    try:
        cls = _OPERATORS[config.type]
    except KeyError:
        raise ConfigurationError(f"Unsupported operator type: {config.type!r}") from None
    return cls(config)
