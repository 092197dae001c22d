import os
import logging

from dotenv import load_dotenv

load_dotenv()

# ---------------- LINE ----------------
LINE_CHANNEL_SECRET       = os.environ.get("LINE_CHANNEL_SECRET", "")
LINE_CHANNEL_ACCESS_TOKEN = os.environ.get("LINE_CHANNEL_ACCESS_TOKEN", "")
LINE_API_BASE             = os.environ.get("LINE_API_BASE", "https://api.line.me").rstrip("/")
HTTP_TIMEOUT              = float(os.environ.get("HTTP_TIMEOUT", "10"))

# ---------------- Google Sheets ----------------
SPREADSHEET_ID      = os.environ.get("SPREADSHEET_ID", "")
DATA_SHEET          = os.environ.get("DATA_SHEET", "Sheet1")
BLOCKLIST_SHEET     = os.environ.get("BLOCKLIST_SHEET", "Blocklist")
USERS_SHEET         = os.environ.get("USERS_SHEET", "Users")
SERVICE_JSON        = os.environ.get("SERVICE_JSON", "")
SERVICE_FILE        = os.environ.get("SERVICE_FILE", "service_account.json")
SHEET_CACHE_SECONDS = float(os.environ.get("SHEET_CACHE_SECONDS", "0"))

# ---------------- Matching / sessions ----------------
FUZZY_THRESHOLD  = float(os.environ.get("FUZZY_THRESHOLD", "0.4"))
PAGE_SIZE        = 12
SESSION_TTL      = int(os.environ.get("SESSION_TTL", str(60 * 30)))  # 30 minutes
SESSION_MAX_SIZE = int(os.environ.get("SESSION_MAX_SIZE", "1000"))

# ---------------- Runtime ----------------
RETRY_ATTEMPTS = int(os.environ.get("RETRY_ATTEMPTS", "2"))
LOG_LEVEL      = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT           = int(os.environ.get("PORT", "8000"))


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return logging.getLogger("formbot")
