from typing import Any, Dict, List

import pandas as pd

from . import config
from .resolver import Candidates, Detail, EmptyTable, NotFound
from .sheets import COL_CODE, COL_NAME, COL_REPORT, COL_STORED, COL_TABLE, COL_VIEW

Message = Dict[str, Any]

MSG_EMPTY_TABLE = "❌ ไม่พบข้อมูลในตาราง"
MSG_NOT_FOUND = "❌ ไม่พบข้อมูลที่เกี่ยวข้องกับคำค้นนี้"
MSG_SYSTEM_ERROR = "⚠️ ระบบขัดข้องชั่วคราว กรุณาลองใหม่อีกครั้ง"

# column -> (glyph, heading)
DETAIL_GROUPS = [
    (COL_STORED, "📁", "ที่จัดเก็บ"),
    (COL_VIEW, "🔗", "ดูข้อมูล"),
    (COL_TABLE, "📊", "ตาราง"),
    (COL_REPORT, "📝", "รายงาน"),
]

NEXT_PREFIX = "next:"


def text_message(text: str) -> Message:
    return {"type": "text", "text": text}


# ---------------- Detail ----------------
def _unique_in_order(series: pd.Series) -> List[str]:
    return [x for x in pd.unique(series) if str(x) != ""]


def detail_text(rows: pd.DataFrame) -> str:
    first = rows.iloc[0]
    names = _unique_in_order(rows[COL_NAME])
    lines = [f"📄 {first[COL_CODE]} {names[0] if names else ''}".rstrip()]
    for col, glyph, heading in DETAIL_GROUPS:
        if col not in rows.columns:
            continue
        values = _unique_in_order(rows[col])
        if not values:
            continue
        lines.append("")
        lines.append(f"{heading}:")
        lines.extend(f"{glyph} {v}" for v in values)
    return "\n".join(lines)


# ---------------- Candidates ----------------
def candidate_bubble(code: str, name: str) -> Message:
    return {
        "type": "bubble",
        "size": "kilo",
        "body": {
            "type": "box",
            "layout": "vertical",
            "spacing": "sm",
            "contents": [
                {"type": "text", "text": f"📄 {code}", "weight": "bold", "size": "md"},
                {"type": "text", "text": name or "-", "size": "sm", "color": "#555555", "wrap": True},
                {
                    "type": "button",
                    "style": "primary",
                    "action": {"type": "message", "label": "🔍 ดูรายละเอียด", "text": code},
                    "height": "sm",
                    "color": "#0FA3B1",
                },
            ],
        },
    }


def paginate(items: List[Any], size: int = config.PAGE_SIZE) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def build_pages(outcome: Candidates) -> List[List[Message]]:
    bubbles = [candidate_bubble(code, outcome.names.get(code, "")) for code in outcome.codes]
    return paginate(bubbles)


def next_page_button(index: int, total: int) -> Message:
    return {
        "type": "template",
        "altText": "📌 ดูฟอร์มเพิ่มเติม",
        "template": {
            "type": "buttons",
            "text": f"หน้า {index}/{total} - ยังมีฟอร์มอื่นอีก",
            "actions": [
                {"type": "message", "label": "➡️ หน้าถัดไป", "text": f"{NEXT_PREFIX}{index}"},
            ],
        },
    }


def page_messages(pages: List[List[Message]], index: int, with_next: bool = True) -> List[Message]:
    """Carousel for ``pages[index]`` plus a next-page button when more remain."""
    alt = "📌 กรุณาเลือกฟอร์มที่ต้องการ" if len(pages) == 1 else "📌 พบหลายฟอร์ม กรุณาเลือก"
    msgs = [{
        "type": "flex",
        "altText": alt,
        "contents": {"type": "carousel", "contents": pages[index]},
    }]
    if with_next and index + 1 < len(pages):
        msgs.append(next_page_button(index + 1, len(pages)))
    return msgs


# ---------------- Entry ----------------
def render(outcome) -> List[Message]:
    if isinstance(outcome, EmptyTable):
        return [text_message(MSG_EMPTY_TABLE)]
    if isinstance(outcome, NotFound):
        return [text_message(MSG_NOT_FOUND)]
    if isinstance(outcome, Detail):
        return [text_message(detail_text(outcome.rows))]
    if isinstance(outcome, Candidates):
        return page_messages(build_pages(outcome), 0)
    raise TypeError(f"unknown outcome: {outcome!r}")
