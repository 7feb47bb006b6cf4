"""Application entry point for the rmtguard filter."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, TextIO

from art import text2art
from dotenv import load_dotenv

import settings
from adapters.definitions_classifier import DefinitionsClassifier, UnavailableClassifier
from adapters.event_stream import history_to_dict, process_lines
from core.engine import FilterEngine
from core.heuristics import LegacyDetector
from core.history import HistoryPartition
from core.models import ChatMessage, ChatType
from core.ports import ClassifierPort

NAME = "RMTGUARD"
FONT = "tarty-1"


def _print_banner() -> None:
    # stdout carries verdicts, so the banner goes to stderr
    print(text2art(NAME, font=FONT, space=1), file=sys.stderr)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # stderr keeps the JSON verdict stream on stdout clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/rmtguard.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_classifier() -> ClassifierPort:
    logger = logging.getLogger(__name__)
    if not settings.CLASSIFIER_ENABLED:
        logger.info("Classifier disabled, filtering on custom rules and item level only")
        return UnavailableClassifier()
    if not os.path.exists(settings.DEFINITIONS_PATH):
        logger.warning("Definitions file %s not found, classifier unavailable", settings.DEFINITIONS_PATH)
        return UnavailableClassifier()
    return DefinitionsClassifier.from_file(settings.DEFINITIONS_PATH)


def _write_line(output: TextIO, payload: dict) -> None:
    output.write(json.dumps(payload, ensure_ascii=False) + "\n")
    output.flush()


def _run(input_path: Optional[str], report: bool) -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting rmtguard")
    config = settings.FILTER_CONFIG
    logger.info(
        "%s chat rules and %s listing rules are loaded, max item level %s",
        len(config.chat_rules.substrings) + len(config.chat_rules.regexes),
        len(config.listing_rules.substrings) + len(config.listing_rules.regexes),
        config.max_item_level,
    )
    if config.heuristic_fallback:
        logger.info("Built-in heuristics are used whenever the classifier has no answer")

    engine = FilterEngine(config, classifier=_build_classifier())

    if input_path:
        with open(input_path, "r", encoding="utf-8") as handle:
            for result in process_lines(engine, handle):
                _write_line(sys.stdout, result)
    else:
        for result in process_lines(engine, sys.stdin):
            _write_line(sys.stdout, result)

    if report:
        for partition in HistoryPartition:
            for entry in engine.history.snapshot(partition):
                _write_line(sys.stdout, {"history": partition.value, **history_to_dict(entry)})

    logger.info("Input exhausted, stopping")


def _check(text: str, channel: str) -> int:
    message = ChatMessage(channel=ChatType.from_name(channel), sender_id=0, sender="", text=text)
    suspicious = LegacyDetector().check_chat(message)
    print("solicitation" if suspicious else "clean")
    return 1 if suspicious else 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="rmtguard")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Filter JSON events from stdin or a file")
    run_parser.add_argument("--input", help="Read events from this file instead of stdin")
    run_parser.add_argument(
        "--report",
        action="store_true",
        help="Print the chat and listing history after the input ends",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Run the built-in solicitation heuristics on one text.",
    )
    check_parser.add_argument("text")
    check_parser.add_argument("--channel", default="say", help="Chat channel the text was sent on")

    args = parser.parse_args(argv)
    if args.command == "check":
        sys.exit(_check(args.text, args.channel))
    _run(getattr(args, "input", None), getattr(args, "report", False))


if __name__ == "__main__":
    main()
