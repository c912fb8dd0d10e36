#!/usr/bin/env python3
"""
rte - Rich Text Extraction

Command-line interface over the extraction engine and metadata fetcher.
Reads text from an argument or stdin, writes tables or JSON.
"""
import sys
import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List

from rich.console import Console
from rich.table import Table

from rich_text_extraction.config import init_config, get_config
from rich_text_extraction.extractor import extract_all
from rich_text_extraction.facade import Extractor
from rich_text_extraction.models import ExtractionKind, LinkObject
from rich_text_extraction.previews import PREVIEW_FORMATS, render_preview
from rich_text_extraction.rendering import render_markdown_html
from rich_text_extraction.validators import IDENTIFIER_VALIDATORS, validate

logger = logging.getLogger(__name__)


console = Console()

KIND_CHOICES = [kind.value for kind in ExtractionKind]


def read_text(value: str) -> str:
    """Return value, or stdin when value is "-"."""
    if value == "-":
        return sys.stdin.read()
    return value


def output_extractions(results: Dict[str, List[str]], format: str = "table"):
    """Output extraction results in the specified format."""
    if format == "json":
        print(json.dumps(results, indent=2))
        return

    table = Table(title="Extracted Entities")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", style="magenta")
    table.add_column("Values", style="green")

    for kind, values in results.items():
        if not values:
            continue
        table.add_row(kind, str(len(values)), "\n".join(v[:80] for v in values))

    if table.row_count == 0:
        console.print("[yellow]Nothing found[/yellow]")
    else:
        console.print(table)


def output_links(links: List[LinkObject], format: str = "table"):
    """Output link objects in the specified format."""
    if format == "json":
        print(json.dumps([link.to_dict() for link in links], indent=2))
        return

    if not links:
        console.print("[yellow]No links found[/yellow]")
        return

    table = Table(title="Links")
    table.add_column("URL", style="blue")
    table.add_column("Title", style="green")
    table.add_column("Status", style="yellow")

    for link in links:
        metadata = link.metadata or {}
        if link.error:
            status = f"[red]{link.error}[/red]"
        elif link.metadata is None:
            status = ""
        else:
            status = "ok"
        table.add_row(link.url[:60], (metadata.get("title") or "")[:50], status)

    console.print(table)


def cmd_extract(args):
    """Extract entities from text."""
    text = read_text(args.text)
    kinds = args.kind if args.kind else None
    output_extractions(extract_all(text, kinds), args.output)


def cmd_metadata(args):
    """Fetch page metadata for a URL."""
    config = get_config()
    fetcher = config.make_fetcher()
    record = fetcher.fetch_metadata(args.url, options=config.fetch_options())

    if args.output == "json":
        print(json.dumps(record, indent=2))
        if "error" in record:
            sys.exit(1)
        return

    if "error" in record:
        console.print(f"[red]✗ Failed to fetch metadata: {record['error']}[/red]")
        sys.exit(1)

    table = Table(title=args.url, show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in record.items():
        table.add_row(key, value)
    console.print(table)


def cmd_links(args):
    """List links in text, optionally with page metadata."""
    config = get_config()
    text = read_text(args.text)

    links = Extractor(text).link_objects(
        with_metadata=args.metadata,
        cache_options=config.fetch_options(),
        fetcher=config.make_fetcher() if args.metadata else None,
        max_workers=args.workers or config.max_workers,
        deadline=args.deadline or config.deadline(),
    )
    output_links(links, args.output)


def cmd_preview(args):
    """Render a link preview for a URL."""
    config = get_config()
    fetcher = config.make_fetcher()
    record = fetcher.fetch_metadata(args.url, options=config.fetch_options())

    if "error" in record:
        console.print(f"[red]✗ Failed to fetch metadata: {record['error']}[/red]")
        sys.exit(1)

    preview = render_preview(record, args.format)
    if not preview:
        console.print("[yellow]No preview available[/yellow]")
        return
    print(preview)


def cmd_render(args):
    """Render markdown text as HTML."""
    print(render_markdown_html(read_text(args.text), sanitize=not args.unsafe))


def cmd_validate(args):
    """Validate a value against an extraction kind or identifier scheme."""
    message = validate(args.value, args.kind)

    if args.output == "json":
        print(json.dumps({
            "value": args.value,
            "kind": args.kind,
            "valid": message is None,
            "error": message,
        }, indent=2))
    elif message is None:
        console.print(f"[green]✓ {args.value} is a valid {args.kind}[/green]")
    else:
        console.print(f"[red]✗ {args.value} {message}[/red]")

    if message is not None:
        sys.exit(1)


def cmd_config(args):
    """Manage configuration."""
    config = get_config()

    if args.action == "show":
        if args.key:
            if not hasattr(config, args.key):
                console.print(f"[red]Unknown config key: {args.key}[/red]")
                sys.exit(1)
            print(getattr(config, args.key))
        else:
            print(json.dumps(asdict(config), indent=2))

    elif args.action == "init":
        config_path = Path.home() / ".config" / "rte" / "config.toml"
        config.save(config_path)
        console.print(f"[green]Created config at {config_path}[/green]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rte",
        description="rte - Rich Text Extraction: pull links, mentions, tags and more out of text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rte extract "Ping @alice about #release at https://example.com"
  rte extract - --kind links < notes.md
  rte links "See https://example.com" --metadata --workers 4 --deadline 10
  rte metadata https://example.com
  rte preview https://example.com --format markdown
  rte validate "user@example.com" emails
  rte validate 9780306406157 isbn
  rte render - < README.md

Configuration:
  Config file: ~/.config/rte/config.toml (or ./rte.toml)
  Environment: RTE_TIMEOUT, RTE_USER_AGENT, RTE_OUTPUT_FORMAT
        """
    )

    # Global options
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-o", "--output", choices=["table", "json"], help="Output format")
    parser.add_argument("--timeout", type=int, help="Request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    # extract
    extract_parser = subparsers.add_parser("extract", help="Extract entities from text")
    extract_parser.add_argument("text", help="Text to scan (- reads stdin)")
    extract_parser.add_argument("--kind", action="append", choices=KIND_CHOICES,
                                help="Kind to extract (repeatable; default: all)")
    extract_parser.set_defaults(func=cmd_extract)

    # metadata
    metadata_parser = subparsers.add_parser("metadata", help="Fetch page metadata for a URL")
    metadata_parser.add_argument("url", help="Page URL")
    metadata_parser.set_defaults(func=cmd_metadata)

    # links
    links_parser = subparsers.add_parser("links", help="List links in text")
    links_parser.add_argument("text", help="Text to scan (- reads stdin)")
    links_parser.add_argument("--metadata", action="store_true", help="Fetch metadata for each link")
    links_parser.add_argument("--workers", type=int, help="Concurrent fetches")
    links_parser.add_argument("--deadline", type=float,
                              help="Seconds allowed for all fetches together")
    links_parser.set_defaults(func=cmd_links)

    # preview
    preview_parser = subparsers.add_parser("preview", help="Render a link preview for a URL")
    preview_parser.add_argument("url", help="Page URL")
    preview_parser.add_argument("--format", choices=PREVIEW_FORMATS, default="html",
                                help="Preview format")
    preview_parser.set_defaults(func=cmd_preview)

    # render
    render_parser = subparsers.add_parser("render", help="Render markdown as HTML")
    render_parser.add_argument("text", help="Markdown to render (- reads stdin)")
    render_parser.add_argument("--unsafe", action="store_true",
                               help="Keep scripts and event handlers")
    render_parser.set_defaults(func=cmd_render)

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate a value")
    validate_parser.add_argument("value", help="Value to check")
    validate_parser.add_argument("kind", choices=KIND_CHOICES + sorted(IDENTIFIER_VALIDATORS),
                                 help="Extraction kind or identifier scheme")
    validate_parser.set_defaults(func=cmd_validate)

    # config
    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("action", choices=["show", "init"], help="Config action")
    config_parser.add_argument("key", nargs="?", help="Config key (for show)")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize configuration with CLI overrides
    config_args = {}
    if args.output:
        config_args["output_format"] = args.output
    if args.timeout:
        config_args["timeout"] = args.timeout
    if args.config:
        config_args["config_file"] = Path(args.config)

    try:
        config = init_config(**config_args)

        if not args.output:
            args.output = config.output_format

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else getattr(logging, str(config.log_level).upper(), logging.WARNING),
            format="%(levelname)s %(name)s: %(message)s",
        )

        # Execute command
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
