"""CLI interface for pii-anonymizer.

Usage:
    # Detect PII (stdin: text, stdout: JSON list of spans)
    echo 'Mail john@x.com' | pii-anonymizer --no-model analyze

    # Anonymize (stdin: text, stdout: {"text": ..., "items": [...]})
    echo 'SSN: 123-45-6789' | pii-anonymizer --no-model anonymize --operator hash --hash-length 16

    # List entity types the configured recognizers can emit
    pii-anonymizer --no-model entities

Settings come from --config (YAML), then command-line flags.  The model
name and encryption key can also be given as PII_ANONYMIZER_MODEL and
PII_ANONYMIZER_KEY.
"""

from __future__ import annotations
import argparse
import asyncio
import json
import os
import sys
from typing import Any, Sequence

from .config import create_analyzer, create_anonymizer, load_config, load_from_yaml
from .errors import ConfigurationError
from .logging_ import setup_logging
from .recognizers.ner import DEFAULT_MODEL
from .types import OperatorConfig, to_entity

DEFAULT_MODEL_NAME = os.environ.get("PII_ANONYMIZER_MODEL", DEFAULT_MODEL)


def _split(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _build_config(args: argparse.Namespace) -> dict[str, Any]:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.no_model:
        cfg["use_model_recognizer"] = False
    if args.model:
        cfg["model_name"] = args.model
    elif not args.config:
        cfg["model_name"] = DEFAULT_MODEL_NAME
    if args.presidio:
        cfg["use_presidio"] = True
    if args.threshold is not None:
        cfg["score_threshold"] = args.threshold
    if args.skip_types:
        cfg["skip_types"] |= {to_entity(t) for t in _split(args.skip_types)}
    if args.allow_list:
        cfg["allow_list"] |= set(_split(args.allow_list))
    return cfg


def _entities(args: argparse.Namespace) -> list[str] | None:
    return _split(args.entities) if args.entities else None


def _operator_from_args(args: argparse.Namespace) -> OperatorConfig:
    return OperatorConfig(
        type=args.operator,
        new_value=args.new_value,
        masking_char=args.masking_char,
        chars_to_mask=args.chars_to_mask,
        from_end=args.from_end,
        hash_algorithm=args.hash_algorithm,
        hash_length=args.hash_length,
        key=args.key or os.environ.get("PII_ANONYMIZER_KEY"),
    )


def _dump(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


async def cmd_analyze(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    """Detect PII in stdin text."""
    analyzer = create_analyzer(cfg)
    text = sys.stdin.read()
    results = await analyzer.analyze(text, _entities(args))
    _dump([r.to_dict() for r in results])


async def cmd_anonymize(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    """Detect and anonymize PII in stdin text."""
    if args.operator:
        cfg["default_operator"] = _operator_from_args(args)
    anonymizer = create_anonymizer(cfg)
    analyzer = create_analyzer(cfg)
    text = sys.stdin.read()
    results = await analyzer.analyze(text, _entities(args))
    _dump(anonymizer.anonymize(text, results).to_dict())


async def cmd_entities(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    """List supported entity types."""
    analyzer = create_analyzer(cfg)
    _dump([e.value for e in analyzer.supported_entities()])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pii-anonymizer",
        description="Detect and de-identify PII in text",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--no-model", action="store_true", help="Regex-only mode")
    parser.add_argument("--model", default=None, help="Token-classification model name")
    parser.add_argument("--presidio", action="store_true", help="Also run Presidio")
    parser.add_argument("--threshold", type=float, default=None, help="Score threshold")
    parser.add_argument("--entities", default="", help="Comma-separated entity types to detect")
    parser.add_argument("--skip-types", default="", help="Comma-separated entity types to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never report")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("analyze", help="Detect PII (text on stdin)")
    anon = sub.add_parser("anonymize", help="Anonymize PII (text on stdin)")
    anon.add_argument("--operator", choices=["redact", "replace", "mask", "hash", "encrypt"])
    anon.add_argument("--new-value", default=None)
    anon.add_argument("--masking-char", default="*")
    anon.add_argument("--chars-to-mask", type=int, default=None)
    anon.add_argument("--from-end", action="store_true")
    anon.add_argument("--hash-algorithm", default="sha256")
    anon.add_argument("--hash-length", type=int, default=None)
    anon.add_argument("--key", default=None, help="Encryption key (16, 24 or 32 bytes)")
    sub.add_parser("entities", help="List supported entity types")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    cmds = {
        "analyze": cmd_analyze,
        "anonymize": cmd_anonymize,
        "entities": cmd_entities,
    }
    try:
        cfg = _build_config(args)
        asyncio.run(cmds[args.command](args, cfg))
    except ConfigurationError as e:
        sys.stderr.write(f"pii-anonymizer: configuration error: {e}\n")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
