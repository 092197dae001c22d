import os
import json
import time
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

import pandas as pd
import gspread
from google.oauth2.service_account import Credentials

from . import config
from .errors import SheetError

log = logging.getLogger("formbot.sheets")

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

# =========================
# Columns (A-F)
# =========================
COL_CODE = "code"      # A
COL_NAME = "name"      # B
COL_STORED = "stored"  # C
COL_VIEW = "view"      # D
COL_TABLE = "table"    # E
COL_REPORT = "report"  # F (optional)

COLUMNS = [COL_CODE, COL_NAME, COL_STORED, COL_VIEW, COL_TABLE, COL_REPORT]


def gsheet_client():
    raw = config.SERVICE_JSON
    if raw:
        info = json.loads(raw)
        creds = Credentials.from_service_account_info(info, scopes=SCOPES)
        return gspread.authorize(creds)

    if not os.path.exists(config.SERVICE_FILE):
        raise RuntimeError(
            "Missing Google credentials. Set SERVICE_JSON with your key JSON "
            f"or place the key file at: {config.SERVICE_FILE}"
        )
    creds = Credentials.from_service_account_file(config.SERVICE_FILE, scopes=SCOPES)
    return gspread.authorize(creds)


# =========================
# Grid -> frame
# =========================
def _cell(val) -> str:
    if val is None:
        return ""
    return str(val).strip()


def frame_from_rows(rows: List[List[Any]]) -> pd.DataFrame:
    """Data rows only (no header). Short rows are padded, extra cells dropped."""
    width = len(COLUMNS)
    cleaned = []
    for row in rows or []:
        cells = [_cell(v) for v in list(row)[:width]]
        cells += [""] * (width - len(cells))
        cleaned.append(cells)
    return pd.DataFrame(cleaned, columns=COLUMNS)


def frame_from_values(values: List[List[Any]]) -> pd.DataFrame:
    """Full sheet grid; row 0 is the header and is ignored."""
    if not values or len(values) < 2:
        return frame_from_rows([])
    return frame_from_rows(values[1:])


# =========================
# Store
# =========================
class SheetStore:
    """Reads the form table and the side sheets (blocklist, user log)."""

    def __init__(
        self,
        spreadsheet_id: str = "",
        data_sheet: str = "",
        blocklist_sheet: str = "",
        users_sheet: str = "",
        cache_seconds: Optional[float] = None,
        client_factory: Callable[[], Any] = gsheet_client,
        clock: Callable[[], float] = time.time,
    ):
        self.spreadsheet_id = spreadsheet_id or config.SPREADSHEET_ID
        self.data_sheet = data_sheet or config.DATA_SHEET
        self.blocklist_sheet = blocklist_sheet or config.BLOCKLIST_SHEET
        self.users_sheet = users_sheet or config.USERS_SHEET
        self.cache_seconds = config.SHEET_CACHE_SECONDS if cache_seconds is None else cache_seconds
        self._client_factory = client_factory
        self._clock = clock
        self._sh = None
        self._cache = {"df": None, "loaded_at": 0.0}

    @property
    def loaded_at(self) -> float:
        return self._cache["loaded_at"]

    def _worksheet(self, name: str):
        if self._sh is None:
            if not self.spreadsheet_id:
                raise SheetError("SPREADSHEET_ID is not set")
            try:
                gc = self._client_factory()
                self._sh = gc.open_by_key(self.spreadsheet_id)
            except SheetError:
                raise
            except Exception as e:
                raise SheetError(f"cannot open spreadsheet: {e}") from e
        try:
            return self._sh.worksheet(name)
        except Exception as e:
            raise SheetError(f"cannot open worksheet {name!r}: {e}") from e

    def fetch_values(self) -> List[List[str]]:
        ws = self._worksheet(self.data_sheet)
        try:
            return ws.get_all_values()
        except Exception as e:
            raise SheetError(f"cannot read worksheet {self.data_sheet!r}: {e}") from e

    def table(self, force: bool = False) -> pd.DataFrame:
        now = self._clock()
        cached = self._cache["df"]
        fresh = cached is not None and (now - self._cache["loaded_at"]) < self.cache_seconds
        if force or not fresh:
            df = frame_from_values(self.fetch_values())
            self._cache["df"] = df
            self._cache["loaded_at"] = now
            log.info("loaded %d rows from %s", len(df), self.data_sheet)
        return self._cache["df"]

    def is_blocked(self, user_id: str) -> bool:
        ws = self._worksheet(self.blocklist_sheet)
        try:
            ids = ws.col_values(1)
        except Exception as e:
            raise SheetError(f"cannot read blocklist: {e}") from e
        return user_id in {_cell(v) for v in ids}

    def log_user(self, user_id: str, display_name: str = "") -> None:
        """Append-or-update (user_id, display_name, timestamp) keyed on user id."""
        ws = self._worksheet(self.users_sheet)
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        try:
            cell = ws.find(user_id, in_column=1)
            if cell:
                ws.update_cell(cell.row, 2, display_name)
                ws.update_cell(cell.row, 3, stamp)
            else:
                ws.append_row([user_id, display_name, stamp], value_input_option="USER_ENTERED")
        except Exception as e:
            raise SheetError(f"cannot update user log: {e}") from e
