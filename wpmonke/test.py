#!/usr/bin/env python3
"""Command line runner for wpmonke.

Usage:
    python -m wpmonke.test --config wpmonke/configs/local.yaml
    python -m wpmonke.test --config wpmonke/configs/local.yaml --suite posts --suite users
    python -m wpmonke.test --list
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from wpmonke.client.wordpress import WordPressClient
from wpmonke.core.config import HarnessConfig
from wpmonke.core.runner import CaseOutcome, SuiteReport, SuiteRunner
from wpmonke.suites.registry import SuiteRegistry
from wpmonke.utils.logging import get_logger

OUTCOME_STYLES = {
    CaseOutcome.PASSED: "green",
    CaseOutcome.FAILED: "red",
    CaseOutcome.ERRORED: "bold red",
    CaseOutcome.SKIPPED: "yellow",
}


async def run_config(
    config_path: str, suites: Optional[List[str]] = None, run_id: Optional[str] = None
) -> SuiteReport:
    """Run the suites of one configuration against its site."""
    logger = get_logger("wpmonke_cli")
    logger.info(f"🚀 Running with config: {config_path}")

    config = HarnessConfig.from_file(config_path)
    async with WordPressClient.from_config(config) as client:
        runner = SuiteRunner(config, client, run_id=run_id)
        return await runner.run(suites or None)


def render_report(report: SuiteReport, console: Console) -> None:
    table = Table(title=f"wpmonke {report.run_id}")
    table.add_column("Case")
    table.add_column("Outcome")
    table.add_column("Time", justify="right")
    table.add_column("Details")
    for result in report.results:
        style = OUTCOME_STYLES[result.outcome]
        details = result.message
        if result.cleanup_errors:
            details = f"{details} [cleanup: {'; '.join(result.cleanup_errors)}]".strip()
        table.add_row(
            result.name,
            f"[{style}]{result.outcome.value}[/]",
            f"{result.duration:.2f}s",
            details,
        )
    console.print(table)
    console.print(
        f"{report.passed} passed, {report.failed} failed, "
        f"{report.errored} errored, {report.skipped} skipped"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run wpmonke WordPress contract suites")
    parser.add_argument("--config", help="Path to run configuration (YAML)")
    parser.add_argument(
        "--suite",
        action="append",
        default=[],
        help="Suite to run; repeatable (default: suites listed in the config, else all)",
    )
    parser.add_argument("--run-id", help="Optional run identifier to correlate events")
    parser.add_argument("--env", default=".env", help="Path to environment file (default: .env)")
    parser.add_argument("--list", action="store_true", help="List available suites and exit")
    args = parser.parse_args(argv)

    console = Console()

    if args.list:
        for name in SuiteRegistry.list_available():
            suite = SuiteRegistry.get(name)
            console.print(f"  • {name}: {suite.description} ({len(suite.list_cases())} cases)")
        return 0

    if not args.config:
        parser.error("--config is required unless --list is given")

    env_path = Path(args.env)
    if env_path.exists():
        load_dotenv(env_path, override=True)
        console.print(f"✅ Loaded environment from {env_path}")

    config_path = Path(args.config)
    if not config_path.exists():
        console.print(f"❌ Config file not found: {config_path}")
        return 1

    try:
        report = asyncio.run(run_config(str(config_path), args.suite, run_id=args.run_id))
    except KeyboardInterrupt:
        console.print("\n⚠️  Run interrupted")
        return 1
    except ValueError as e:
        console.print(f"❌ {e}")
        return 1

    render_report(report, console)
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
