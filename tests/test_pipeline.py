"""End-to-end tests: analyze, then anonymize (regex-only unless noted)."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import asyncio
import hashlib

import pytest

from pii_anonymizer import (
    Analyzer, AnalyzerConfig, Anonymizer, EntityType, NerRecognizer,
    OperatorConfig, OperatorType, PatternRecognizer, decrypt,
)

KEY = "0123456789abcdef"   # 16 bytes -> AES-128


def scrub(text, analyzer_config=None, anonymizer=None, operators=None):
    analyzer = Analyzer(analyzer_config or AnalyzerConfig(use_model_recognizer=False))
    results = asyncio.run(analyzer.analyze(text))
    return (anonymizer or Anonymizer()).anonymize(text, results, operators)


# ── Redaction ────────────────────────────────────────────────────────

def test_redact_email():
    result = scrub("Email: test@example.com")
    assert result.text == "Email: <EMAIL_ADDRESS>"
    assert len(result.items) == 1


def test_redact_multiple():
    result = scrub("Email john@a.com or jane@b.com, SSN 123-45-6789")
    assert result.text == "Email <EMAIL_ADDRESS> or <EMAIL_ADDRESS>, SSN <US_SSN>"


def test_redact_is_idempotent():
    once = scrub("Email: test@example.com, call 555-123-4567").text
    assert scrub(once).text == once


def test_clean_text_untouched():
    result = scrub("The weather is nice today in Melbourne")
    assert result.text == "The weather is nice today in Melbourne"
    assert result.items == ()


def test_allow_list():
    config = AnalyzerConfig(use_model_recognizer=False, allow_list={"john@acme.com"})
    assert scrub("Email: john@acme.com", config).text == "Email: john@acme.com"


def test_skip_types():
    config = AnalyzerConfig(use_model_recognizer=False, skip_types={"EMAIL_ADDRESS"})
    result = scrub("Email: john@acme.com, SSN: 123-45-6789", config)
    assert result.text == "Email: john@acme.com, SSN: <US_SSN>"


# ── Other operators ──────────────────────────────────────────────────

def test_hash_ssn():
    anonymizer = Anonymizer(operators_by_entity={
        EntityType.US_SSN: OperatorConfig(OperatorType.HASH),
    })
    result = scrub("SSN: 123-45-6789", anonymizer=anonymizer)
    assert result.text == "SSN: " + hashlib.sha256(b"123-45-6789").hexdigest()
    assert scrub("SSN: 123-45-6789", anonymizer=anonymizer).text == result.text


def test_mask_credit_card():
    result = scrub("Card: 4111-1111-1111-1111", operators={
        EntityType.CREDIT_CARD: OperatorConfig(OperatorType.MASK, chars_to_mask=15),
    })
    assert result.text == "Card: ***************1111"


def test_mixed_operators():
    text = "Mail jane@b.com from 10.0.0.1"
    result = scrub(text, operators={
        "EMAIL_ADDRESS": OperatorConfig(OperatorType.REPLACE, new_value="someone@example.org"),
        "IP_ADDRESS": OperatorConfig(OperatorType.MASK, masking_char="x"),
    })
    assert result.text == "Mail someone@example.org from xxxxxxxx"
    assert [i.operator for i in result.items] == [OperatorType.REPLACE, OperatorType.MASK]


def test_encrypt_person_from_model():
    text = "Patient Grace Hopper, mail grace@navy.mil"

    def factory(model_name):
        return lambda t: [
            {"entity": "B-PER", "start": 8, "end": 13, "score": 0.99},
            {"entity": "I-PER", "start": 14, "end": 20, "score": 0.99},
        ]

    analyzer = Analyzer(recognizers=[
        PatternRecognizer(), NerRecognizer("fake", classifier_factory=factory),
    ])
    anonymizer = Anonymizer(operators_by_entity={
        EntityType.PERSON: OperatorConfig(OperatorType.ENCRYPT, key=KEY),
    })

    results = asyncio.run(analyzer.analyze(text))
    result = anonymizer.anonymize(text, results)

    person, email = result.items
    assert person.entity_type is EntityType.PERSON
    assert decrypt(person.text, KEY) == "Grace Hopper"
    assert result.text == f"Patient {person.text}, mail <EMAIL_ADDRESS>"
    assert email.text == "<EMAIL_ADDRESS>"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
