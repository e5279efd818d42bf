"""Orchestrator: wires session manager, scrape operation and sheet publishing.

Data flow per account:
  1. Acquire an authenticated session
  2. Scrape each target in order
  3. SESSION_INVALID -> close, re-acquire (bounded), retry that target
  4. Close the session on every exit path
Then, for the whole run:
  5. Publish successful readings that map to a sheet range
"""

import json
import logging
from datetime import date

from src.auth.manager import SessionManager
from src.browser.diagnostics import Diagnostics
from src.core.config import AccountConfig, ScrapeTarget, SettlePolicy, Settings
from src.core.schemas import SESSION_INVALID, MetricReading
from src.scrape.operation import scrape
from src.sheets.writer import RangeUpdate, SheetsWriter

logger = logging.getLogger(__name__)


async def run_account(
    account: AccountConfig,
    targets: list[ScrapeTarget],
    manager: SessionManager,
    *,
    policy: SettlePolicy,
    diagnostics: Diagnostics,
    max_reacquire: int = 1,
    run_date: date | None = None,
) -> list[MetricReading]:
    """Scrape every target of one account with a single (renewable) session.

    AuthFailure and ElementNotFound propagate after the session is closed.
    """
    day = (run_date or date.today()).isoformat()
    readings: list[MetricReading] = []
    reacquired = 0

    session = await manager.acquire_session(account)
    try:
        for target in targets:
            url = target.resolve_url(day)
            while True:
                logger.info("Scraping '%s' (%s)", target.name, url)
                result = await scrape(
                    session.page, account, url, target.selector, target.timeout_ms,
                    policy=policy, diagnostics=diagnostics,
                )
                if result is not SESSION_INVALID:
                    readings.append(MetricReading(
                        target=target.name, account_id=account.id, url=url, value=str(result),
                    ))
                    break

                if reacquired >= max_reacquire:
                    logger.warning(
                        "Session for '%s' invalid again; giving up on '%s'",
                        account.id, target.name,
                    )
                    readings.append(MetricReading(
                        target=target.name, account_id=account.id, url=url,
                        status="session_invalid",
                    ))
                    break

                reacquired += 1
                logger.info(
                    "Re-acquiring session for '%s' (%d/%d)",
                    account.id, reacquired, max_reacquire,
                )
                await session.close()
                session = await manager.acquire_session(account)
    finally:
        await session.close()

    return readings


async def run_all(
    settings: Settings,
    manager: SessionManager,
    diagnostics: Diagnostics,
    *,
    run_date: date | None = None,
) -> list[MetricReading]:
    """Run every account that has targets, one after the other."""
    readings: list[MetricReading] = []
    for account in settings.accounts:
        targets = settings.targets_for(account.id)
        if not targets:
            logger.info("No targets for '%s' — skipping", account.id)
            continue
        readings.extend(await run_account(
            account,
            targets,
            manager,
            policy=settings.settle,
            diagnostics=diagnostics,
            max_reacquire=settings.max_session_reacquire,
            run_date=run_date,
        ))
    return readings


def build_updates(
    readings: list[MetricReading],
    targets: list[ScrapeTarget],
) -> list[RangeUpdate]:
    """One single-cell update per successful reading whose target has a range."""
    ranges = {t.name: t.sheet_range for t in targets if t.sheet_range}
    updates: list[RangeUpdate] = []
    for r in readings:
        if r.status != "ok" or r.target not in ranges:
            continue
        updates.append({"range": ranges[r.target], "values": [[r.value]]})
    return updates


def publish_readings(
    readings: list[MetricReading],
    targets: list[ScrapeTarget],
    writer: SheetsWriter,
    spreadsheet_id: str,
    value_input_option: str = "USER_ENTERED",
) -> int:
    """Send readings to the spreadsheet. Returns updated-cell count."""
    updates = build_updates(readings, targets)
    if not updates:
        logger.info("Nothing to publish")
        return 0
    return writer.batch_update(spreadsheet_id, updates, value_input_option)


def export_readings_json(readings: list[MetricReading]) -> str:
    """Export readings as a JSON string."""
    return json.dumps([r.model_dump(mode="json") for r in readings], indent=2)
