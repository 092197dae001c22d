# app.py — LINE form lookup webhook
# - POST /callback verifies X-Line-Signature and answers text messages
# - exact code -> detail text, fuzzy -> paged carousel (12 per page) with a next:<n> button
# - reply first, push once if the reply token is rejected
# - blocklist + user log sheets are best effort (fail-open)

from __future__ import annotations
import json, time, logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flask import Flask, request, abort, jsonify
from linebot.v3.exceptions import InvalidSignatureError

from . import config
from .delivery import DeliveryResult, deliver
from .line import LineClient, verify_signature
from .renderer import MSG_SYSTEM_ERROR, build_pages, page_messages, render, text_message
from .resolver import Candidates, resolve
from .sessions import PageSessionStore, parse_page_directive
from .sheets import SheetStore

log = logging.getLogger("formbot")


# ---------------- Context ----------------
@dataclass
class BotContext:
    sheets: Any
    sessions: PageSessionStore
    line: Any
    channel_secret: str = ""
    retry_attempts: int = config.RETRY_ATTEMPTS
    retry_pause: float = 0.35

    @classmethod
    def from_env(cls) -> "BotContext":
        return cls(
            sheets=SheetStore(),
            sessions=PageSessionStore(),
            line=LineClient(),
            channel_secret=config.LINE_CHANNEL_SECRET,
        )


# ---------------- Side sheets (best effort) ----------------
def _is_blocked(ctx: BotContext, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    try:
        return ctx.sheets.is_blocked(user_id)
    except Exception as e:
        log.warning("blocklist check failed for %s, allowing: %s", user_id, e)
        return False


def _log_user(ctx: BotContext, user_id: Optional[str]) -> None:
    if not user_id:
        return
    try:
        ctx.sheets.log_user(user_id, ctx.line.display_name(user_id))
    except Exception as e:
        log.warning("user log skipped for %s: %s", user_id, e)


# ---------------- Resolution ----------------
def resolve_with_retry(ctx: BotContext, text: str):
    """Load the table and resolve; retried once (RETRY_ATTEMPTS) before giving up."""
    attempts, last_exc = 0, None
    while attempts < max(ctx.retry_attempts, 1):
        try:
            return resolve(text, ctx.sheets.table())
        except Exception as e:
            last_exc = e
            attempts += 1
            log.warning("resolve attempt %d failed: %s", attempts, e)
            if attempts >= max(ctx.retry_attempts, 1):
                break
            time.sleep(ctx.retry_pause)
    raise last_exc


def answer(ctx: BotContext, user_id: Optional[str], text: str) -> List[Dict[str, Any]]:
    page = parse_page_directive(text)
    if page is not None and user_id:
        session = ctx.sessions.get(user_id)
        if session is not None and ctx.sessions.advance(user_id, page) is not None:
            log.info("page %d for %s", page, user_id)
            return page_messages(session.pages, min(page, len(session.pages) - 1))
        log.info("stale page directive %r from %s, resolving as text", text, user_id)

    try:
        outcome = resolve_with_retry(ctx, text)
    except Exception:
        log.exception("resolution failed for %r", text)
        return [text_message(MSG_SYSTEM_ERROR)]

    log.info("query=%r outcome=%s", text, outcome.kind)
    if isinstance(outcome, Candidates):
        pages = build_pages(outcome)
        if not user_id:
            # no session to page through
            return page_messages(pages, 0, with_next=False)
        ctx.sessions.put(user_id, pages)
        return page_messages(pages, 0)
    return render(outcome)


def handle_text(ctx: BotContext, user_id: Optional[str], text: str, reply_token: str) -> Optional[DeliveryResult]:
    text = (text or "").strip()
    if _is_blocked(ctx, user_id):
        log.info("blocked user %s ignored", user_id)
        return None
    _log_user(ctx, user_id)
    messages = answer(ctx, user_id, text)
    return deliver(ctx.line, reply_token, user_id, messages)


# ---------------- HTTP Routes ----------------
def create_app(ctx: Optional[BotContext] = None) -> Flask:
    ctx = ctx or BotContext.from_env()
    app = Flask(__name__)
    app.config["BOT_CONTEXT"] = ctx

    @app.post("/callback")
    def callback():
        body = request.get_data()
        signature = request.headers.get("X-Line-Signature")
        try:
            verify_signature(ctx.channel_secret, body, signature)
        except (InvalidSignatureError, ValueError) as e:
            log.warning("rejected callback: %s", e)
            abort(400)
        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            abort(400)
        if not isinstance(payload, dict):
            abort(400)

        for event in payload.get("events") or []:
            if not isinstance(event, dict):
                continue
            message = event.get("message") or {}
            if event.get("type") != "message" or message.get("type") != "text":
                continue
            user_id = (event.get("source") or {}).get("userId")
            try:
                handle_text(ctx, user_id, message.get("text") or "", event.get("replyToken") or "")
            except Exception:
                logging.exception("event error")
        return "OK"

    @app.get("/health")
    def health():
        try:
            df = ctx.sheets.table()
            return jsonify({
                "ok": True,
                "rows": int(len(df)),
                "columns": df.columns.tolist(),
                "loaded_at": ctx.sheets.loaded_at,
                "sessions": len(ctx.sessions),
                "retry_attempts": ctx.retry_attempts,
            })
        except Exception as e:
            return jsonify({"ok": False, "error": str(e)}), 500

    @app.get("/reload")
    def reload_data():
        try:
            ctx.sheets.table(force=True)
            return jsonify({"ok": True, "reloaded_at": ctx.sheets.loaded_at})
        except Exception as e:
            return jsonify({"ok": False, "error": str(e)}), 500

    return app


config.setup_logging()
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT, debug=False)
