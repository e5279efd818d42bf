"""Screenshots and HTML dumps for humans debugging a failed run.

Nothing here is read back by the scraper, so every failure is logged and
swallowed rather than aborting the flow.
"""

import logging
from pathlib import Path
from typing import Any

from src.core.config import DiagnosticsConfig

logger = logging.getLogger(__name__)


class Diagnostics:
    """Writes ``<step>.png`` and ``<step>.html`` into the configured dirs."""

    def __init__(self, config: DiagnosticsConfig) -> None:
        self._config = config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    async def screenshot(self, page: Any, step: str) -> Path | None:
        if not self.enabled:
            return None
        path = Path(self._config.screenshots_dir) / f"{step}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path))
        except Exception as e:
            logger.warning("Failed to save screenshot '%s': %s", step, e)
            return None
        logger.debug("Saved screenshot %s", path)
        return path

    async def dump_html(self, page: Any, step: str) -> Path | None:
        if not self.enabled:
            return None
        path = Path(self._config.html_dir) / f"{step}.html"
        try:
            html = await page.content()
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except Exception as e:
            logger.warning("Failed to save page dump '%s': %s", step, e)
            return None
        logger.debug("Saved page dump %s", path)
        return path

    async def capture(self, page: Any, step: str, *, html: bool = False) -> None:
        """Screenshot, plus an HTML dump when ``html`` is set."""
        await self.screenshot(page, step)
        if html:
            await self.dump_html(page, step)
