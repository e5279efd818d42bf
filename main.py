"""CLI entry point for the dashboard metric scraper."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

import gspread
from dotenv import load_dotenv

from src.auth.login import LoginFlow
from src.auth.manager import SessionManager
from src.browser.cookie_store import CookieStore
from src.browser.diagnostics import Diagnostics
from src.core.config import Settings
from src.core.errors import AuthFailure, ElementNotFound
from src.pipeline.orchestrator import export_readings_json, publish_readings, run_all
from src.sheets.writer import SheetsWriter


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scrape dashboard metrics behind a password + 2FA login",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- scrape subcommand (default) ---
    scrape_parser = subparsers.add_parser("scrape", help="Scrape all configured targets")
    _add_common(scrape_parser)
    scrape_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Date substituted for {date} in target URLs (default: today)",
    )
    scrape_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without launching a browser",
    )
    scrape_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export readings to format (json)",
    )

    # --- login subcommand ---
    login_parser = subparsers.add_parser(
        "login",
        help="Log in to one account and refresh its stored cookies",
    )
    _add_common(login_parser)
    login_parser.add_argument("--account", required=True, help="Account id")

    # --- check-sheets subcommand ---
    check_parser = subparsers.add_parser(
        "check-sheets",
        help="Read a spreadsheet range to verify the service account setup",
    )
    _add_common(check_parser)
    check_parser.add_argument(
        "--range",
        dest="a1_range",
        default="A1:Z20",
        help="A1 range to read (default: A1:Z20)",
    )

    # --- backward compat: top-level flags for scrape ---
    parser.add_argument("--config", default="config/settings.yaml", help=argparse.SUPPRESS)
    parser.add_argument("--date", type=date.fromisoformat, default=None, help=argparse.SUPPRESS)
    parser.add_argument("--dry-run", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--export", choices=["json"], help=argparse.SUPPRESS)
    parser.add_argument("--verbose", "-v", action="store_true", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)

    # Default to scrape when no subcommand given
    if args.command is None:
        args.command = "scrape"

    return args


def _add_common(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    sub.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_manager(settings: Settings, diagnostics: Diagnostics) -> SessionManager:
    login_flow = LoginFlow(
        settings.settle,
        diagnostics,
        two_factor_timeout_s=settings.two_factor_timeout_s,
    )
    return SessionManager(
        settings.browser,
        settings.settle,
        CookieStore(settings.browser.cookies_dir),
        login_flow,
        diagnostics,
    )


def dry_run(settings: Settings, run_date: date) -> None:
    """Print what would happen without launching a browser."""
    store = CookieStore(settings.browser.cookies_dir)
    day = run_date.isoformat()

    print(f"[DRY RUN] {len(settings.accounts)} accounts, {len(settings.targets)} targets")

    for account in settings.accounts:
        has_jar = store.path_for(account.id).exists()
        print(f"[DRY RUN] account '{account.id}' at {account.root_url}: "
              f"cookies {'present' if has_jar else 'missing (login required)'}")
        for target in settings.targets_for(account.id):
            print(f"  '{target.name}': {target.resolve_url(day)}")
            print(f"    Selector: {target.selector} (timeout {target.timeout_ms} ms)")
            if target.sheet_range:
                print(f"    Sheet range: {target.sheet_range}")

    status = "enabled" if settings.sheets.enabled else "disabled"
    print(f"[DRY RUN] Sheets publishing {status}")


async def run(settings: Settings, run_date: date, export_format: str | None) -> None:
    """Run the full scrape pipeline with a real browser."""
    diagnostics = Diagnostics(settings.diagnostics)
    manager = build_manager(settings, diagnostics)

    readings = await run_all(settings, manager, diagnostics, run_date=run_date)

    print(f"\nScrape complete: {len(readings)} readings, {manager.login_count} logins.")
    for r in readings:
        shown = r.value if r.status == "ok" else "<session invalid>"
        print(f"  '{r.target}' [{r.account_id}]: {shown}")

    if settings.sheets.enabled:
        writer = SheetsWriter(settings.sheets.credentials_path)
        updated = publish_readings(
            readings,
            settings.targets,
            writer,
            settings.sheets.spreadsheet_id,
            settings.sheets.value_input_option,
        )
        print(f"Published: {updated} cells updated.")

    if export_format == "json" and readings:
        print(f"\n{export_readings_json(readings)}")


async def login(settings: Settings, account_id: str) -> None:
    """Acquire a session for one account so its cookie jar gets refreshed."""
    diagnostics = Diagnostics(settings.diagnostics)
    manager = build_manager(settings, diagnostics)
    try:
        account = settings.account(account_id)
    except KeyError:
        msg = f"unknown account '{account_id}'"
        raise ValueError(msg) from None

    session = await manager.acquire_session(account)
    await session.close()
    how = "logged in" if manager.login_count else "cookies still valid"
    print(f"Account '{account_id}': {how}.")


def cmd_check_sheets(settings: Settings, a1_range: str) -> None:
    """Handle check-sheets subcommand."""
    if not settings.sheets.spreadsheet_id:
        msg = "sheets.spreadsheet_id is not configured"
        raise ValueError(msg)
    writer = SheetsWriter(settings.sheets.credentials_path)
    values = writer.read_range(settings.sheets.spreadsheet_id, a1_range)
    print(json.dumps(values, indent=2))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)
    load_dotenv()

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "login":
            asyncio.run(login(settings, args.account))
        elif args.command == "check-sheets":
            cmd_check_sheets(settings, args.a1_range)
        else:
            # scrape (default)
            run_date = args.date or date.today()
            if args.dry_run:
                dry_run(settings, run_date)
            else:
                asyncio.run(run(settings, run_date, args.export))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (AuthFailure, ElementNotFound) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (gspread.exceptions.GSpreadException, OSError) as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
