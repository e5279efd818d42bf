"""Per-account cookie jar persistence.

One JSON file per account: ``<cookies_dir>/cookies_<account_id>.json``,
containing an array of cookie records. No semantic validation happens here;
whether the cookies still work is discovered by the session probe.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.core.schemas import COOKIE_JAR_ADAPTER, CookieJar

logger = logging.getLogger(__name__)


class CookieStore:
    """Loads and saves cookie jars keyed by account id.

    Usage::

        store = CookieStore("cache")
        jar = store.load("acme")      # None if absent or unreadable
        store.save("acme", jar)       # False if the write failed
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def path_for(self, account_id: str) -> Path:
        return self._dir / f"cookies_{account_id}.json"

    def load(self, account_id: str) -> CookieJar | None:
        """Return the stored jar, or None. Never raises for I/O or parse errors."""
        path = self.path_for(account_id)
        if not path.exists():
            logger.debug("No cookie jar for '%s' at %s", account_id, path)
            return None
        try:
            jar = COOKIE_JAR_ADAPTER.validate_json(path.read_bytes())
        except (ValidationError, OSError) as e:
            logger.warning("Failed to load cookies from %s: %s", path, e)
            return None
        logger.info("Loaded %d cookies from '%s'", len(jar), path)
        return jar

    def save(self, account_id: str, jar: CookieJar) -> bool:
        """Write the jar, replacing any previous one in a single rename.

        Returns True on success. Failures are logged, not raised.
        """
        path = self.path_for(account_id)
        payload = json.dumps(
            [c.to_browser() for c in jar],
            indent=2,
        )
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.warning("Failed to save cookies to %s: %s", path, e)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        logger.info("Saved %d cookies to '%s'", len(jar), path)
        return True
