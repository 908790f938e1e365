"""Command-line interface for gemini-bridge."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from .config import get_config, get_log_level, get_project_id
from .mapper import (
    SignatureStore,
    resolve_request_config,
    transform_openai_request,
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _read_request(path: str) -> Dict[str, Any]:
    """Load an OpenAI request from a JSON file, or stdin for ``-``."""
    if path == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(path).read_text(encoding="utf-8")

    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Request JSON must be an object")
    return payload


def _print_json(data: Any, compact: bool) -> None:
    if compact:
        print(json.dumps(data, ensure_ascii=False, separators=(",", ":")))
    else:
        console.print_json(json.dumps(data, ensure_ascii=False))


def _handle_translate(args: argparse.Namespace) -> int:
    payload = _read_request(args.request)

    store: Optional[SignatureStore] = None
    session_id = args.session
    if args.signature:
        # One-shot store so the signature only applies to this invocation
        store = SignatureStore()
        session_id = session_id or "cli"
        store.put(session_id, args.signature)

    envelope = transform_openai_request(
        payload,
        project_id=args.project or get_project_id(),
        mapped_model=args.model,
        session_id=session_id,
        signature_store=store,
        user_agent=get_config().mapper.user_agent,
    )
    _print_json(envelope, args.compact)
    return 0


def _handle_resolve(args: argparse.Namespace) -> int:
    config = resolve_request_config(args.alias, args.model or args.alias)
    _print_json(asdict(config), args.compact)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemini-bridge",
        description="Translate OpenAI chat-completion requests into Gemini request envelopes",
    )
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--compact", action="store_true", help="Print single-line JSON")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    translate_parser = subparsers.add_parser("translate", help="Translate an OpenAI request")
    translate_parser.add_argument("request", help="Path to the request JSON ('-' for stdin)")
    translate_parser.add_argument(
        "--model", "-m", required=True, help="Backend model the request alias maps to"
    )
    translate_parser.add_argument("--project", "-p", default=None, help="Backend project id")
    translate_parser.add_argument(
        "--session", "-s", default=None, help="Conversation id for thought signature lookup"
    )
    translate_parser.add_argument(
        "--signature", default=None, help="Thought signature to attach to the first tool call"
    )

    resolve_parser = subparsers.add_parser(
        "resolve", help="Show the backend config resolved for a model alias"
    )
    resolve_parser.add_argument("alias", help="Model alias sent by the client")
    resolve_parser.add_argument(
        "--model", "-m", default=None, help="Mapped backend model (defaults to the alias)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        setup_logging((args.log_level or get_log_level()).upper())
        if args.command == "translate":
            return _handle_translate(args)
        return _handle_resolve(args)
    except (OSError, ValueError) as e:
        err_console.print(Panel(f"[red]{e}[/red]", title="❌ Error", border_style="red"))
        return 1


def run():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        err_console.print(
            Panel("[yellow]👋 Interrupted![/yellow]", title="⚠️ Interruption", border_style="yellow")
        )
        sys.exit(0)


if __name__ == "__main__":
    run()
