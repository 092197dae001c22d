import os
import sys
import hmac
import base64
import hashlib

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("LINE_CHANNEL_SECRET", "test-secret")
os.environ.setdefault("SPREADSHEET_ID", "test-sheet")

from formbot.errors import SheetError
from formbot.sheets import frame_from_values

HEADER = ["Code", "Name", "Stored", "View", "Table", "Report"]

SAMPLE_VALUES = [
    HEADER,
    ["F001", "Leave Form", "HR Drive", "HR Portal", "Tbl_Leave"],
    ["F002", "Expense Form", "Fin Drive", "Fin Portal", "Tbl_Exp"],
]


def many_values(n):
    rows = [HEADER]
    for i in range(n, 0, -1):
        rows.append([f"F{i:03d}", f"Form number {i}", "Drive", "Portal", "Tbl"])
    return rows


def sign(secret, body):
    mac = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(mac).decode("utf-8")


class FakeSheets:
    """Stands in for SheetStore; no network."""

    def __init__(self, values, blocked=(), fail_times=0, blocklist_error=None):
        self.values = values
        self.blocked = set(blocked)
        self.fail_times = fail_times
        self.blocklist_error = blocklist_error
        self.table_calls = 0
        self.loaded_at = 0.0
        self.logged = {}

    def table(self, force=False):
        self.table_calls += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise SheetError("sheet unavailable")
        self.loaded_at = 1700000000.0
        return frame_from_values(self.values)

    def is_blocked(self, user_id):
        if self.blocklist_error is not None:
            raise self.blocklist_error
        return user_id in self.blocked

    def log_user(self, user_id, display_name=""):
        self.logged[user_id] = display_name


@pytest.fixture
def sample_table():
    return frame_from_values(SAMPLE_VALUES)
