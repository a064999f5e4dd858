"""
Command-line interface.

``privacy-analyzer analyze <url>`` fetches one page, runs the static
analysis, prints the results and optionally writes them to a JSON
file.  ``privacy-analyzer serve`` runs the background service.

Exit codes: ``0`` on success, ``1`` when the page cannot be fetched
or analysed, ``2`` on usage errors (including an unknown filter).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

import dotenv
import pydantic

from privacy_analyzer import __version__, config
from privacy_analyzer.analysis import filters, page_analyzer
from privacy_analyzer.browser import fetch
from privacy_analyzer.models import page, report
from privacy_analyzer.reporting import console, export
from privacy_analyzer.utils import errors, logger, serialization, url

log = logger.create_logger("CLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="privacy-analyzer",
        description="Detect third-party scripts, dynamic code execution and fingerprinting on a web page.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze a web page for privacy concerns")
    analyze.add_argument("url", help="Absolute http(s) URL of the page")
    analyze.add_argument("-o", "--output", metavar="FILE", help="Write the full report to FILE as JSON")
    analyze.add_argument(
        "-f",
        "--filter",
        default=filters.ALL,
        metavar="LIST",
        help=f"Comma-separated categories to report ({', '.join(filters.VALID_TOKENS)})",
    )
    analyze.add_argument("--live", action="store_true", help="Load the page in headless Chromium and intercept canvas calls")
    analyze.add_argument("--json", action="store_true", help="Print the report as JSON instead of text")

    serve = sub.add_parser("serve", help="Run the background service")
    serve.add_argument("--host", default=None, help="Bind address (default: UVICORN_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: UVICORN_PORT)")

    return parser


async def _analyze_live(page_url: str, settings: config.Settings) -> report.AnalysisReport:
    # Imported lazily: Playwright is only needed for --live.
    from privacy_analyzer.browser import live_page

    async with live_page.LivePageSession(settings) as session:
        return await session.analyze(page_url)


def _describe_settings_error(exc: pydantic.ValidationError) -> str:
    """Condense a settings validation error into one line."""
    first = exc.errors()[0]
    where = ".".join(str(part) for part in first["loc"])
    return f"Invalid configuration: {where}: {first['msg']}" if where else f"Invalid configuration: {first['msg']}"


def run_analyze(args: argparse.Namespace, categories: list[str]) -> int:
    """Run the ``analyze`` command; returns the exit code."""
    try:
        settings = config.get_settings()
        logger.start_log_file(url.extract_domain(args.url))
        log.section(f"Analyzing {args.url}")
        page.AnalysisTarget.from_url(args.url)
        if args.live:
            result = asyncio.run(_analyze_live(args.url, settings))
        else:
            html = fetch.fetch_page_sync(args.url, settings)
            result = page_analyzer.analyze_html(args.url, html)
    except pydantic.ValidationError as exc:
        print(f"Error: {_describe_settings_error(exc)}", file=sys.stderr)
        return 1
    except errors.AnalyzerError as exc:
        log.error("Analysis failed", {"error": errors.get_error_message(exc)})
        print(f"Error: {errors.get_error_message(exc)}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        logger.end_log_file()

    filtered = filters.filter_report(result, categories)

    if args.json:
        print(serialization.to_json(filtered))
    else:
        print("\n".join(console.render_report(filtered)))

    if args.output:
        try:
            export.write_report(args.output, filtered)
        except OSError as exc:
            print(f"Error: Could not write {args.output}: {exc}", file=sys.stderr)
            return 1
        if not args.json:
            print(f"\n💾 Results saved to: {args.output}")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    dotenv.load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        from privacy_analyzer import app

        app.main(args.host, args.port)
        return 0

    try:
        categories = filters.parse_filters(args.filter)
    except errors.InvalidFilterError as exc:
        parser.error(str(exc))

    return run_analyze(args, categories)


if __name__ == "__main__":
    sys.exit(main())
