import logging
from typing import Any, Dict, List, Optional

from linebot.v3.exceptions import InvalidSignatureError
from linebot.v3.messaging import (
    ApiClient,
    ApiException,
    Configuration,
    MessagingApi,
    PushMessageRequest,
    ReplyMessageRequest,
)
from linebot.v3.webhook import SignatureValidator

from . import config
from .errors import LineApiError

log = logging.getLogger("formbot.line")


def verify_signature(secret: str, body: bytes, signature: Optional[str]) -> None:
    """Raise InvalidSignatureError unless X-Line-Signature matches the raw body."""
    if not secret or not signature:
        raise InvalidSignatureError("missing channel secret or signature")
    if not SignatureValidator(secret).validate(body.decode("utf-8"), signature):
        raise InvalidSignatureError("signature mismatch")


class LineClient:
    """Reply, push and profile calls through the Messaging API SDK."""

    def __init__(self, access_token: str = "", base_url: str = "", timeout: Optional[float] = None,
                 api: Optional[MessagingApi] = None):
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        if api is None:
            configuration = Configuration(
                access_token=access_token or config.LINE_CHANNEL_ACCESS_TOKEN,
                host=(base_url or config.LINE_API_BASE).rstrip("/"),
            )
            api = MessagingApi(ApiClient(configuration))
        self.api = api

    def _call(self, what: str, fn):
        try:
            return fn()
        except ApiException as e:
            raise LineApiError(f"{what} -> {e.status}", status=e.status, body=str(e.body or e.reason or "")[:500]) from e
        except Exception as e:
            raise LineApiError(f"{what} failed: {e}") from e

    def reply(self, reply_token: str, messages: List[Dict[str, Any]]) -> None:
        self._call("reply", lambda: self.api.reply_message(
            ReplyMessageRequest.from_dict({"replyToken": reply_token, "messages": messages}),
            _request_timeout=self.timeout,
        ))

    def push(self, to: str, messages: List[Dict[str, Any]]) -> None:
        self._call("push", lambda: self.api.push_message(
            PushMessageRequest.from_dict({"to": to, "messages": messages}),
            _request_timeout=self.timeout,
        ))

    def display_name(self, user_id: str) -> str:
        try:
            profile = self._call(
                "profile", lambda: self.api.get_profile(user_id, _request_timeout=self.timeout))
        except LineApiError as e:
            log.warning("profile lookup failed for %s: %s", user_id, e)
            return ""
        return str(getattr(profile, "display_name", "") or "")
