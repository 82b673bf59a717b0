from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from . import sources
from .compiler import compile_expression
from .config import AppConfig, ExtractionJob, Settings, load_config, save_config
from .document import Document
from .errors import GrokError, MatchError, ParseError
from .pipeline import ExtractionPipeline, export_csv
from .runtime import iter_matches, search_document

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARSE_ERROR = 2


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        parser=args.parser,
        timeout=args.timeout,
        ignore_case=args.ignore_case,
    )


def _print_parse_error(exc: ParseError) -> None:
    print(f"Error parsing expression: {exc.message}")
    print(exc.expression)
    print(" " * exc.position + "^")


def _open_source(args: argparse.Namespace, settings: Settings) -> Document:
    if args.source == "-":
        body = sys.stdin.buffer.read()
        source = "<stdin>"
    else:
        body = sources.fetch(args.source, settings)
        source = args.source

    if args.as_string:
        text = body.decode(args.encoding or "utf-8", errors="replace")
        return Document.from_string(text, settings=settings, source=source)
    return Document.from_bytes(body, encoding=args.encoding, settings=settings, source=source)


def cmd_check(args: argparse.Namespace) -> int:
    try:
        machine = compile_expression(args.expression)
    except ParseError as exc:
        _print_parse_error(exc)
        return EXIT_PARSE_ERROR
    print(f"Expression parsed correctly ({len(machine)} step(s))")
    return EXIT_OK


def cmd_search(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    try:
        machine = compile_expression(args.expression, ignore_case=settings.ignore_case)
    except ParseError as exc:
        _print_parse_error(exc)
        return EXIT_PARSE_ERROR

    try:
        with _open_source(args, settings) as document:
            if not args.all:
                print(search_document(document, args.template, machine))
                return EXIT_OK

            found = 0
            for match in iter_matches(machine, document):
                print(match.render(args.template))
                found += 1
            if not found:
                raise MatchError("No match found")
    except GrokError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Could not load {args.config}: {exc}")
        return EXIT_FAILED
    if not config.jobs:
        print(f"No jobs found in {args.config}. Add at least one job and try again.")
        return EXIT_FAILED

    pipeline = ExtractionPipeline(config)
    results = pipeline.run()
    pipeline.render(results)

    if args.output:
        saved = export_csv(results, Path(args.output))
        print(f"Saved {saved} results to {args.output}")
    return EXIT_OK if all(result.ok for result in results) else EXIT_FAILED


def cmd_init_config(args: argparse.Namespace) -> int:
    path = Path(args.path)
    if path.exists():
        print(f"{path} already exists. Skipping creation.")
        return EXIT_OK

    example = AppConfig(
        jobs=[
            ExtractionJob(
                name="example",
                uri="https://example.com/",
                expression='h1 -> text:"(.*)"',
                template="Title: \\1",
            )
        ]
    )
    save_config(example, path)
    print(f"Created starter config at {path}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract text from HTML documents with tree expressions")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Compile an expression and report errors")
    check_parser.add_argument("expression", help='Tree expression, e.g. tr -> td -> text:"(.*)"')
    check_parser.set_defaults(func=cmd_check)

    search_parser = subparsers.add_parser("search", help="Search one document and print the rendered result")
    search_parser.add_argument("expression", help="Tree expression")
    search_parser.add_argument("template", help="Output template using \\0..\\9 back-references")
    search_parser.add_argument("source", help="URI or path of the document, or - for stdin")
    search_parser.add_argument("--all", action="store_true", help="Print every match instead of the first")
    search_parser.add_argument("--encoding", help="Override the document encoding")
    search_parser.add_argument(
        "--as-string",
        action="store_true",
        help="Decode the document before parsing (ignores its declared charset)",
    )
    search_parser.add_argument("--ignore-case", action="store_true", help="Match text patterns case-insensitively")
    search_parser.add_argument("--parser", default=Settings.parser, help="BeautifulSoup tree builder")
    search_parser.add_argument("--timeout", type=int, default=Settings.timeout, help="HTTP timeout in seconds")
    search_parser.set_defaults(func=cmd_search)

    run_parser = subparsers.add_parser("run", help="Run the extraction jobs from a config file")
    run_parser.add_argument("--config", "-c", default="grokhtml.yaml", help="Path to the YAML config")
    run_parser.add_argument("--output", "-o", help="Optional CSV destination")
    run_parser.set_defaults(func=cmd_run)

    init_parser = subparsers.add_parser("init-config", help="Create a starter config file")
    init_parser.add_argument("--path", "-p", default="grokhtml.yaml", help="Where to create the file")
    init_parser.set_defaults(func=cmd_init_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler()])
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
