"""Google Sheets collaborator: push small batches of cell values.

Stateless request/response; gspread errors propagate to the caller.
"""

import logging
from typing import Any, TypedDict

import gspread

logger = logging.getLogger(__name__)


class RangeUpdate(TypedDict):
    range: str
    values: list[list[Any]]


class SheetsWriter:
    """Thin wrapper over a gspread service-account client.

    The client is created lazily so constructing a writer never touches
    the credentials file or the network.
    """

    def __init__(self, credentials_path: str) -> None:
        self._credentials_path = credentials_path
        self._client: gspread.Client | None = None

    @property
    def client(self) -> gspread.Client:
        if self._client is None:
            self._client = gspread.service_account(filename=self._credentials_path)
        return self._client

    def batch_update(
        self,
        spreadsheet_id: str,
        updates: list[RangeUpdate],
        value_input_option: str = "USER_ENTERED",
    ) -> int:
        """Write every ``{range, values}`` pair in one request.

        Returns:
            Total number of updated cells reported by the API.
        """
        spreadsheet = self.client.open_by_key(spreadsheet_id)
        response = spreadsheet.values_batch_update(
            body={"valueInputOption": value_input_option, "data": list(updates)},
        )
        updated = int(response.get("totalUpdatedCells", 0))
        logger.info("Updated %d cells in spreadsheet %s", updated, spreadsheet_id)
        return updated

    def read_range(self, spreadsheet_id: str, a1_range: str) -> list[list[Any]]:
        """Read a range; used to check the service account can reach the sheet."""
        spreadsheet = self.client.open_by_key(spreadsheet_id)
        response = spreadsheet.values_get(a1_range)
        values: list[list[Any]] = response.get("values", [])
        logger.debug("Read %d rows from %s!%s", len(values), spreadsheet_id, a1_range)
        return values
