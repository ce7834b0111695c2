"""YAML/dict config loader for pii-anonymizer.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    pii_anonymizer:
      use_model_recognizer: true
      model_name: dslim/bert-base-NER
      model_timeout: 30
      use_presidio: false
      language: en
      score_threshold: 0.35
      skip_types:
        - DATE_TIME
      allow_list:
        - safe@example.com
      default_operator:
        type: redact
      operators:
        EMAIL_ADDRESS: {type: mask, masking_char: "#", chars_to_mask: 4, from_end: true}
        US_SSN: {type: hash, hash_length: 16}
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Mapping

from .analyzer import Analyzer, AnalyzerConfig
from .anonymizer import Anonymizer
from .errors import ConfigurationError
from .recognizers.ner import DEFAULT_MODEL, DEFAULT_TIMEOUT
from .types import CustomEntity, Entity, EntityType, OperatorConfig, to_entity


def _entity(value: Any, where: str) -> Entity:
    if isinstance(value, (EntityType, CustomEntity)):
        return value
    if not isinstance(value, str):
        raise ConfigurationError(f"{where}: entity type must be a string, got {value!r}")
    try:
        return to_entity(value)
    except ValueError as e:
        raise ConfigurationError(f"{where}: {e}") from e


def _operator(value: Any, where: str) -> OperatorConfig:
    if isinstance(value, OperatorConfig):
        return value
    if isinstance(value, str):
        return OperatorConfig(type=value)
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(value).__name__}")
    try:
        return OperatorConfig.from_dict(value)
    except TypeError as e:
        raise ConfigurationError(f"{where}: {e}") from e


def load_config(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "pii_anonymizer" key or flat
    if "pii_anonymizer" in data:
        data = data["pii_anonymizer"] or {}

    threshold = data.get("score_threshold", 0.35)
    try:
        threshold = float(threshold)
    except (TypeError, ValueError):
        raise ConfigurationError(f"score_threshold must be a number, got {threshold!r}") from None

    operators = data.get("operators") or {}
    if not isinstance(operators, Mapping):
        raise ConfigurationError("operators must map entity types to operator configs")

    return {
        "use_model_recognizer": bool(data.get("use_model_recognizer", True)),
        "model_name": data.get("model_name", DEFAULT_MODEL),
        "model_timeout": data.get("model_timeout", DEFAULT_TIMEOUT),
        "use_presidio": bool(data.get("use_presidio", False)),
        "language": data.get("language", "en"),
        "score_threshold": threshold,
        "skip_types": {_entity(t, "skip_types") for t in data.get("skip_types") or []},
        "allow_list": set(data.get("allow_list") or []),
        "default_operator": _operator(data.get("default_operator", {"type": "redact"}),
                                      "default_operator"),
        "operators": {
            _entity(entity, "operators"): _operator(op, f"operators.{entity}")
            for entity, op in operators.items()
        },
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml  # optional dependency
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {})


def create_analyzer(config: Mapping[str, Any]) -> Analyzer:
    """Create an Analyzer from a raw or normalized config dict."""
    cfg = load_config(config)
    return Analyzer(AnalyzerConfig(
        use_model_recognizer=cfg["use_model_recognizer"],
        model_name=cfg["model_name"],
        model_timeout=cfg["model_timeout"],
        use_presidio=cfg["use_presidio"],
        language=cfg["language"],
        score_threshold=cfg["score_threshold"],
        skip_types=cfg["skip_types"],
        allow_list=cfg["allow_list"],
    ))


def create_anonymizer(config: Mapping[str, Any]) -> Anonymizer:
    """Create an Anonymizer from a raw or normalized config dict."""
    cfg = load_config(config)
    return Anonymizer(
        default_operator=cfg["default_operator"],
        operators_by_entity=cfg["operators"],
    )
