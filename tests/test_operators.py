"""Tests for anonymization operators."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import hashlib
import re

import pytest

from pii_anonymizer import (
    ConfigurationError, CustomEntity, EntityType, OperatorConfig, OperatorType,
    create_operator, decrypt,
)

KEY = "0123456789abcdef0123456789abcdef"   # 32 bytes -> AES-256


def op(type_, **kwargs):
    return create_operator(OperatorConfig(type_, **kwargs))


# ── Config ───────────────────────────────────────────────────────────

def test_unknown_operator_type_rejected():
    with pytest.raises(ConfigurationError):
        OperatorConfig(type="shred")


def test_operator_type_from_string():
    assert OperatorConfig(type="MASK").type is OperatorType.MASK


def test_from_dict_rejects_unknown_option():
    with pytest.raises(ConfigurationError):
        OperatorConfig.from_dict({"type": "mask", "mask_char": "#"})


def test_from_dict():
    config = OperatorConfig.from_dict({"type": "hash", "hash_length": 8})
    assert config.type is OperatorType.HASH
    assert config.hash_length == 8


def test_field_types_checked():
    with pytest.raises(ConfigurationError):
        OperatorConfig(OperatorType.HASH, hash_length="16")
    with pytest.raises(ConfigurationError):
        OperatorConfig(OperatorType.MASK, chars_to_mask=2.5)
    with pytest.raises(ConfigurationError):
        OperatorConfig(OperatorType.REPLACE, new_value=42)
    with pytest.raises(ConfigurationError):
        OperatorConfig(OperatorType.ENCRYPT, key=12345)


def test_irrelevant_fields_ignored():
    redact = op(OperatorType.REDACT, masking_char="??", hash_algorithm="nope")
    assert redact.operate("x", EntityType.URL) == "<URL>"


# ── Redact / Replace ─────────────────────────────────────────────────

def test_redact_uses_entity_tag():
    assert op(OperatorType.REDACT).operate("a@b.com", EntityType.EMAIL_ADDRESS) == "<EMAIL_ADDRESS>"


def test_redact_custom_entity_tag():
    assert op(OperatorType.REDACT).operate("EMP-1", CustomEntity("employee_id")) == "<EMPLOYEE_ID>"


def test_redact_with_fixed_or_empty_value():
    assert op(OperatorType.REDACT, new_value="").operate("Bob", EntityType.PERSON) == ""
    assert op(OperatorType.REDACT, new_value="[X]").operate("Bob", EntityType.PERSON) == "[X]"


def test_replace_with_new_value():
    assert op(OperatorType.REPLACE, new_value="Jane Doe").operate("Bob", EntityType.PERSON) == "Jane Doe"


def test_replace_falls_back_to_redact():
    assert op(OperatorType.REPLACE).operate("Bob", EntityType.PERSON) == "<PERSON>"


# ── Mask ─────────────────────────────────────────────────────────────

def test_mask_everything_by_default():
    assert op(OperatorType.MASK).operate("abcde", EntityType.PERSON) == "*****"


def test_mask_count_beyond_length_never_overruns():
    assert op(OperatorType.MASK, chars_to_mask=10).operate("abcde", EntityType.PERSON) == "*****"


def test_mask_from_start():
    assert op(OperatorType.MASK, chars_to_mask=2).operate("abcde", EntityType.PERSON) == "**cde"


def test_mask_from_end():
    masked = op(OperatorType.MASK, chars_to_mask=2, from_end=True).operate("abcde", EntityType.PERSON)
    assert masked == "abc**"


def test_mask_zero_masks_nothing():
    assert op(OperatorType.MASK, chars_to_mask=0).operate("abcde", EntityType.PERSON) == "abcde"


def test_mask_custom_char():
    masked = op(OperatorType.MASK, masking_char="#", chars_to_mask=12).operate(
        "4111111111111111", EntityType.CREDIT_CARD)
    assert masked == "############1111"


def test_mask_rejects_bad_config():
    with pytest.raises(ConfigurationError):
        op(OperatorType.MASK, masking_char="**")
    with pytest.raises(ConfigurationError):
        op(OperatorType.MASK, masking_char="")
    with pytest.raises(ConfigurationError):
        op(OperatorType.MASK, chars_to_mask=-1)


# ── Hash ─────────────────────────────────────────────────────────────

def test_hash_sha256_default():
    digest = op(OperatorType.HASH).operate("123-45-6789", EntityType.US_SSN)
    assert digest == hashlib.sha256(b"123-45-6789").hexdigest()
    assert re.fullmatch(r"[0-9a-f]{64}", digest)


def test_hash_is_deterministic_across_instances():
    a = op(OperatorType.HASH).operate("alice", EntityType.PERSON)
    b = op(OperatorType.HASH).operate("alice", EntityType.PERSON)
    assert a == b


def test_hash_algorithms_and_truncation():
    assert len(op(OperatorType.HASH, hash_algorithm="md5").operate("x", EntityType.PERSON)) == 32
    assert len(op(OperatorType.HASH, hash_algorithm="SHA512").operate("x", EntityType.PERSON)) == 128
    short = op(OperatorType.HASH, hash_length=16).operate("x", EntityType.PERSON)
    assert short == hashlib.sha256(b"x").hexdigest()[:16]


def test_hash_rejects_bad_config():
    with pytest.raises(ConfigurationError):
        op(OperatorType.HASH, hash_algorithm="crc32")
    with pytest.raises(ConfigurationError):
        op(OperatorType.HASH, hash_length=0)
    with pytest.raises(ConfigurationError):
        op(OperatorType.HASH, hash_length=65)


# ── Encrypt ──────────────────────────────────────────────────────────

def test_encrypt_requires_key():
    with pytest.raises(ConfigurationError):
        op(OperatorType.ENCRYPT)


def test_encrypt_rejects_bad_key_size():
    with pytest.raises(ConfigurationError):
        op(OperatorType.ENCRYPT, key="short")


def test_encrypt_round_trip():
    token = op(OperatorType.ENCRYPT, key=KEY).operate("john@acme.com", EntityType.EMAIL_ADDRESS)
    assert "john" not in token
    assert decrypt(token, KEY) == "john@acme.com"


def test_encrypt_accepts_bytes_key():
    key = bytes(range(16))
    token = op(OperatorType.ENCRYPT, key=key).operate("Bob", EntityType.PERSON)
    assert decrypt(token, key) == "Bob"


def test_encrypt_uses_fresh_nonce():
    encrypt = op(OperatorType.ENCRYPT, key=KEY)
    assert encrypt.operate("Bob", EntityType.PERSON) != encrypt.operate("Bob", EntityType.PERSON)


def test_decrypt_detects_wrong_key_and_tampering():
    token = op(OperatorType.ENCRYPT, key=KEY).operate("Bob", EntityType.PERSON)
    with pytest.raises(ValueError):
        decrypt(token, "fedcba9876543210fedcba9876543210")
    tampered = token[:-2] + ("AA" if token[-2:] != "AA" else "BB")
    with pytest.raises(ValueError):
        decrypt(tampered, KEY)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
