"""
Keyword resolution.

Given free text and the form table, decide between an exact code match,
a fuzzy match against the code and name columns, or no match.

Fuzzy scoring uses RapidFuzz ``partial_ratio`` (0-100): the shorter string
is aligned anywhere inside the longer one, so the position of the match is
ignored. A row is a hit when its best score (code or name) is within the
normalized distance ``threshold`` of a perfect match.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import pandas as pd
from rapidfuzz import fuzz

from . import config
from .sheets import COL_CODE, COL_NAME, frame_from_rows

FUZZY_COLUMNS = (COL_CODE, COL_NAME)


# ---------------- Outcomes ----------------
@dataclass(frozen=True)
class EmptyTable:
    kind = "empty_table"


@dataclass(frozen=True)
class NotFound:
    query: str = ""
    kind = "not_found"


@dataclass(eq=False)
class Detail:
    rows: pd.DataFrame
    kind = "detail"

    @property
    def code(self) -> str:
        return self.rows.iloc[0][COL_CODE]


@dataclass
class Candidates:
    codes: List[str]
    names: Dict[str, str] = field(default_factory=dict)
    kind = "candidates"


Outcome = Union[EmptyTable, NotFound, Detail, Candidates]


# ---------------- Matching ----------------
def normalize(text: str) -> str:
    return (text or "").strip().lower()


def _as_frame(table) -> pd.DataFrame:
    if isinstance(table, pd.DataFrame):
        return table
    return frame_from_rows(table)


def fuzzy_hits(query: str, df: pd.DataFrame, threshold: float) -> List[tuple]:
    """(score, position) for every matching row, in row order."""
    q = normalize(query)
    if not q:
        return []
    cutoff = (1.0 - threshold) * 100.0
    hits = []
    for pos, (_, r) in enumerate(df.iterrows()):
        if not r[COL_CODE]:
            continue
        score = max(fuzz.partial_ratio(q, str(r[c]).lower()) for c in FUZZY_COLUMNS)
        if score >= cutoff:
            hits.append((score, pos))
    return hits


def resolve(query: str, table, threshold: Optional[float] = None) -> Outcome:
    df = _as_frame(table)
    if df.empty:
        return EmptyTable()

    q = normalize(query)
    exact = df[df[COL_CODE].str.lower() == q]
    if q and not exact.empty:
        return Detail(exact.reset_index(drop=True))

    hits = fuzzy_hits(q, df, config.FUZZY_THRESHOLD if threshold is None else threshold)
    if not hits:
        return NotFound(q)

    codes = sorted({df.iloc[pos][COL_CODE] for _, pos in hits})
    names = {}
    for code in codes:
        first = df[df[COL_CODE] == code].iloc[0]
        names[code] = first[COL_NAME]
    return Candidates(codes, names)
