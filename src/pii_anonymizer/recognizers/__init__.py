"""Recognizers: pluggable sources of candidate PII spans."""

from .base import Recognizer
from .pattern import PatternRecognizer
from .ner import NerRecognizer, merge_tokens
from .presidio import PresidioRecognizer

__all__ = [
    "Recognizer",
    "PatternRecognizer",
    "NerRecognizer", "merge_tokens",
    "PresidioRecognizer",
]
