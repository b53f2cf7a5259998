"""Application entry point for the chatledger CLI."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.evm_event_schema import EvmEventSchema, load_abi
from adapters.ipfs_gateway import GatewayFetcher
from adapters.sqlite_storage import SQLiteTranscriptStore
from adapters.transcript_formatting import format_message, format_transcript
from adapters.web3_ledger import Web3Ledger, build_chat_filter
from client import build_web3
from core.assembler import merge_transcripts
from core.config import ResolverConfig, ScanConfig
from core.errors import ChatLedgerError
from core.models import Message
from core.processor import TranscriptProcessor, sync_transcript

NAME = "CHATLEDGER"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


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
        # stderr keeps log lines out of piped transcript output.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/chatledger.log")
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


def _build_schema() -> EvmEventSchema:
    if settings.ABI_PATH:
        return EvmEventSchema.from_abi(load_abi(settings.ABI_PATH), settings.EVENT_NAME)
    return EvmEventSchema.default()


def _build_processor(lookback: Optional[int] = None) -> TranscriptProcessor:
    scan_config = ScanConfig(lookback_blocks=settings.LOOKBACK_BLOCKS, chunk_size=settings.CHUNK_SIZE)
    if lookback is not None:
        scan_config = replace(scan_config, lookback_blocks=lookback)

    w3 = build_web3(settings.REQUEST_TIMEOUT_S)
    return TranscriptProcessor(
        ledger=Web3Ledger(w3),
        schema=_build_schema(),
        fetcher=GatewayFetcher(timeout_s=settings.FETCH_TIMEOUT_S),
        contract_address=settings.CONTRACT_ADDRESS,
        scan_config=scan_config,
        resolver_config=ResolverConfig(gateway=settings.GATEWAY, max_workers=settings.MAX_WORKERS),
        filter_builder=build_chat_filter,
    )


def _build_store() -> SQLiteTranscriptStore:
    store = SQLiteTranscriptStore(settings.DB_PATH)
    store.init_db()
    return store


def _transcript(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    try:
        processor = _build_processor(args.lookback)
        if args.no_cache:
            transcript = processor.reconstruct_with_report(args.chat_id, from_block=args.from_block)
            messages: List[Message] = list(transcript.messages)
        else:
            store = _build_store()
            # an explicit window replaces resuming from the stored cursor
            resume = args.lookback is None and args.from_block is None
            result = sync_transcript(processor, store, args.chat_id, from_block=args.from_block, resume=resume)
            transcript = result.transcript
            messages = store.load_transcript(args.chat_id)
    except (ChatLedgerError, RuntimeError) as exc:
        logger.error("Transcript for chat %s failed: %s", args.chat_id, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if transcript.scan.skipped_blocks:
        logger.warning("Skipped %s unreadable blocks", len(transcript.scan.skipped_blocks))

    mode = "json" if args.json else "text"
    print(format_transcript(messages, mode=mode, sender_labels=settings.SENDER_ALIASES))
    return 0


def _watch(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    interval = args.interval if args.interval is not None else settings.WATCH_INTERVAL_S

    processor = _build_processor()
    store = None if args.no_cache else _build_store()
    in_memory: List[Message] = []
    cursor: Optional[int] = None

    logger.info("Watching chat %s every %ss", args.chat_id, interval)
    try:
        while True:
            try:
                if store is not None:
                    fresh = list(sync_transcript(processor, store, args.chat_id).fresh)
                else:
                    from_block = cursor + 1 if cursor is not None else None
                    transcript = processor.reconstruct_with_report(args.chat_id, from_block=from_block)
                    known = {message.id for message in in_memory}
                    fresh = [message for message in transcript.messages if message.id not in known]
                    in_memory = merge_transcripts(in_memory, transcript.messages)
                    if transcript.scan.window is not None:
                        cursor = transcript.scan.window.to_block
                for message in fresh:
                    print(format_message(message, settings.SENDER_ALIASES), flush=True)
            except Exception:
                logger.exception("Error while polling chat %s", args.chat_id)
            time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("Stopped watching chat %s", args.chat_id)
    return 0


def _head(args: argparse.Namespace) -> int:
    try:
        w3 = build_web3(settings.REQUEST_TIMEOUT_S)
        ledger = Web3Ledger(w3)
        head = ledger.get_block_number()
        print(f"Chain head: {head}")
        if args.chat_id is not None:
            log_filter = build_chat_filter(settings.CONTRACT_ADDRESS, _build_schema(), args.chat_id)
            print(f"Address: {log_filter.address}")
            for index, topic in enumerate(log_filter.topics):
                print(f"Topic {index}: {topic}")
    except (ChatLedgerError, RuntimeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="chatledger")
    subparsers = parser.add_subparsers(dest="command")

    transcript_parser = subparsers.add_parser("transcript", help="Reconstruct and print a chat transcript")
    transcript_parser.add_argument("chat_id", type=int)
    transcript_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    transcript_parser.add_argument("--lookback", type=int, default=None, help="Blocks to scan back from head")
    transcript_parser.add_argument("--from-block", type=int, default=None, help="Scan from this block instead")
    transcript_parser.add_argument("--no-cache", action="store_true", help="Do not read or write the SQLite cache")

    watch_parser = subparsers.add_parser("watch", help="Re-poll a chat and print new messages")
    watch_parser.add_argument("chat_id", type=int)
    watch_parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    watch_parser.add_argument("--no-cache", action="store_true", help="Keep the transcript in memory only")

    head_parser = subparsers.add_parser("head", help="Show chain head and the log filter for a chat")
    head_parser.add_argument("chat_id", type=int, nargs="?", default=None)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    if not getattr(args, "json", False):
        _print_banner()
    _configure_logging()
    logging.getLogger(__name__).info("Starting chatledger %s", args.command)

    if args.command == "transcript":
        sys.exit(_transcript(args))
    if args.command == "watch":
        sys.exit(_watch(args))
    sys.exit(_head(args))


if __name__ == "__main__":
    main()
