"""PII Anonymizer — detect PII in text and rewrite it with configurable operators."""

from .analyzer import Analyzer, AnalyzerConfig
from .anonymizer import Anonymizer
from .config import create_analyzer, create_anonymizer, load_config, load_from_yaml
from .errors import ConfigurationError, InvalidSpanError, PIIError, RecognizerError
from .operators import create_operator, decrypt
from .recognizers import NerRecognizer, PatternRecognizer, PresidioRecognizer, Recognizer
from .resolver import resolve_spans
from .rewriter import rewrite_text
from .types import (
    AnonymizedItem, AnonymizerResult, CustomEntity, Entity, EntityType,
    OperatorConfig, OperatorType, RecognizerResult, to_entity,
)

__all__ = [
    "Analyzer", "AnalyzerConfig",
    "Anonymizer",
    "create_analyzer", "create_anonymizer", "load_config", "load_from_yaml",
    "PIIError", "ConfigurationError", "InvalidSpanError", "RecognizerError",
    "create_operator", "decrypt",
    "Recognizer", "PatternRecognizer", "NerRecognizer", "PresidioRecognizer",
    "resolve_spans", "rewrite_text",
    "EntityType", "CustomEntity", "Entity", "to_entity",
    "RecognizerResult", "OperatorType", "OperatorConfig",
    "AnonymizedItem", "AnonymizerResult",
]
__version__ = "0.1.0"
