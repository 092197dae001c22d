import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import LineApiError

log = logging.getLogger("formbot.delivery")


@dataclass
class DeliveryResult:
    ok: bool
    channel: Optional[str] = None  # "reply" | "push"
    error: str = ""


def deliver(line, reply_token: str, user_id: Optional[str], messages: List[Dict[str, Any]]) -> DeliveryResult:
    """Reply on the event's token; on failure push to the user once."""
    errors = []
    if reply_token:
        try:
            line.reply(reply_token, messages)
            return DeliveryResult(True, "reply")
        except LineApiError as e:
            log.warning("reply failed, trying push: %s", e)
            errors.append(f"reply: {e}")
    if user_id:
        try:
            line.push(user_id, messages)
            return DeliveryResult(True, "push")
        except LineApiError as e:
            errors.append(f"push: {e}")
    if not errors:
        errors.append("no reply token or user id")
    result = DeliveryResult(False, None, "; ".join(errors))
    log.error("delivery failed user=%s error=%s", user_id, result.error)
    return result
