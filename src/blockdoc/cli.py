"""CLI for blockdoc - block-structured documents from the command line."""

import argparse
import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

import yaml

from . import __version__
from .config import BACKENDS
from .core.editor import intent_from_dict
from .errors import BlockdocError, DocumentNotFound
from .export import render_html, render_markdown
from .runtime import build_runtime


class RecordingNotifier:
    """Collects session notifications so a command can report save failures."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    def notify(self, level: str, title: str, message: str) -> None:
        self.messages.append((level, title, message))

    @property
    def errors(self) -> list[str]:
        return [m for level, _, m in self.messages if level == "error"]


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create an empty document."""
    document = rt.gateway.open(None, owner_id=args.owner, title=args.title or "Untitled")
    # persist the initial empty block so its id is stable across invocations
    document = rt.gateway.save(
        document.id, document.title, document.blocks, next_block_id=document.next_block_id
    )
    if args.json:
        print(json.dumps(document.to_dict(), indent=2))
    elif not args.quiet:
        print(document.id)
    return 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List documents."""
    documents = rt.gateway.list(args.owner)
    if args.json:
        result = [{"id": d.id, "title": d.title, "blocks": len(d.blocks)} for d in documents]
        print(json.dumps(result, indent=2))
        return 0
    for d in documents:
        print(f"{d.id}\t{d.title}")
    return 0


def cmd_show(args: argparse.Namespace, rt: Any) -> int:
    """Print a document's title and plain text."""
    document = rt.gateway.open(args.id)
    if args.json:
        data = document.to_dict()
        data["wordCount"] = document.word_count()
        print(json.dumps(data, indent=2))
        return 0
    if args.words:
        print(document.word_count())
        return 0
    print(document.title)
    print()
    print(document.plain_text())
    return 0


def cmd_rm(args: argparse.Namespace, rt: Any) -> int:
    """Delete a document."""
    if not rt.gateway.delete(args.id):
        print(f"Document {args.id} not found", file=sys.stderr)
        return 1
    if not args.quiet:
        print(f"Deleted {args.id}")
    return 0


def cmd_export(args: argparse.Namespace, rt: Any) -> int:
    """Render a document as Markdown or HTML."""
    document = rt.gateway.open(args.id)
    if args.format == "html":
        text = render_html(document)
    else:
        text = render_markdown(document)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        if not args.quiet:
            print(f"Wrote {args.output}")
    else:
        sys.stdout.write(text)
    return 0


def load_script(path: Path) -> list[dict[str, Any]]:
    """Load a YAML (or JSON) list of intent mappings."""
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return []
    if isinstance(data, dict) and "intents" in data:
        data = data["intents"]
    if not isinstance(data, list) or not all(isinstance(i, dict) for i in data):
        raise BlockdocError(f"{path}: expected a list of intents")
    return data


def cmd_apply(args: argparse.Namespace, rt: Any) -> int:
    """Apply a script of editing intents to a document and save it."""
    try:
        intents = [intent_from_dict(i) for i in load_script(Path(args.script))]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    notifier = RecordingNotifier()
    session = rt.open_session(args.id, notifier=notifier)
    try:
        results = session.apply_all(intents)
        session.save_now()
    finally:
        session.close()

    if notifier.errors:
        for message in notifier.errors:
            print(f"Error: {message}", file=sys.stderr)
        return 1

    changed = sum(1 for r in results if r.changed)
    if args.json:
        print(json.dumps({"applied": len(results), "changed": changed}))
    elif not args.quiet:
        print(f"Applied {len(results)} intents ({changed} changed)")
    return 0


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print(
            "Error: API dependencies not installed. "
            "Install with: pip install blockdoc",
            file=sys.stderr
        )
        print(f"Details: {e}", file=sys.stderr)
        return 1

    # Determine token
    token_arg = args.token
    token = None

    if token_arg == 'auto':
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == 'none':
        print("Warning: Running without authentication. Only use in trusted environments.")
    else:
        token = token_arg

    enable_cors = args.cors or rt.config.server.cors
    app = create_app(rt, token=token, enable_cors=enable_cors)

    host = args.host or rt.config.server.host
    port = args.port or rt.config.server.port

    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def configure_logging(verbose: int, level_name: str) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="blockdoc", description="Block-structured document editor"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"blockdoc {__version__} (python {platform.python_version()}, {platform.system()})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/blockdoc.toml, storage/blockdoc.toml)",
    )
    parser.add_argument(
        "--storage",
        type=Path,
        default=None,
        help="Document storage directory (overrides config)",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Storage backend (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # new command
    parser_new = subparsers.add_parser("new", help="Create an empty document")
    parser_new.add_argument("--title", default=None, help="Document title")
    parser_new.add_argument("--owner", type=int, default=None, help="Owner user id")

    # ls command
    parser_ls = subparsers.add_parser("ls", help="List documents")
    parser_ls.add_argument("--owner", type=int, default=None, help="Only this owner's documents")

    # show command
    parser_show = subparsers.add_parser("show", help="Print a document as plain text")
    parser_show.add_argument("id", type=int, help="Document id")
    parser_show.add_argument("--words", action="store_true", help="Print the word count only")

    # rm command
    parser_rm = subparsers.add_parser("rm", help="Delete a document")
    parser_rm.add_argument("id", type=int, help="Document id")

    # export command
    parser_export = subparsers.add_parser("export", help="Render a document")
    parser_export.add_argument("id", type=int, help="Document id")
    parser_export.add_argument(
        "--format", choices=["markdown", "html"], default="markdown", help="Output format"
    )
    parser_export.add_argument("-o", "--output", default=None, help="Write to file instead of stdout")

    # apply command
    parser_apply = subparsers.add_parser("apply", help="Apply editing intents from a YAML/JSON file")
    parser_apply.add_argument("id", type=int, help="Document id")
    parser_apply.add_argument("script", help="File with a list of intents")

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", default=None, help="Bind address")
    parser_serve.add_argument("--port", type=int, default=None, help="Port")
    parser_serve.add_argument(
        "--token", default="none",
        help="Bearer token: 'auto' to generate, 'none' to disable, or a literal token"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    args = parser.parse_args()

    # Build runtime
    try:
        rt = build_runtime(
            config_path=args.config,
            storage_root=args.storage,
            backend=args.backend,
        )
    except BlockdocError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.verbose, rt.config.logging.level)

    # Dispatch to command handlers
    handlers = {
        "new": cmd_new,
        "ls": cmd_ls,
        "show": cmd_show,
        "rm": cmd_rm,
        "export": cmd_export,
        "apply": cmd_apply,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except DocumentNotFound as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
