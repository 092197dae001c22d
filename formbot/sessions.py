"""
In-memory pagination sessions.

One entry per requester: the candidate pages from their last multi-candidate
search and the page currently shown. Entries are kept in LRU order, capped at
``max_size`` and dropped ``ttl`` seconds after their last write.
"""
import re
import time
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from . import config

PAGE_DIRECTIVE_RE = re.compile(r"^\s*next:(\d+)\s*$", re.I)


def parse_page_directive(text: str) -> Optional[int]:
    m = PAGE_DIRECTIVE_RE.match(text or "")
    return int(m.group(1)) if m else None


@dataclass
class PageSession:
    pages: List[List[Any]]
    index: int = 0
    updated_at: float = 0.0


class PageSessionStore:
    def __init__(
        self,
        max_size: int = config.SESSION_MAX_SIZE,
        ttl: float = config.SESSION_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, PageSession]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._entries)

    def _purge(self, now: float) -> None:
        stale = [k for k, s in self._entries.items() if now - s.updated_at > self.ttl]
        for k in stale:
            del self._entries[k]

    def put(self, requester_id: str, pages: List[List[Any]]) -> PageSession:
        now = self._clock()
        session = PageSession(pages=list(pages), index=0, updated_at=now)
        with self._lock:
            self._purge(now)
            self._entries[requester_id] = session
            self._entries.move_to_end(requester_id)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
        return session

    def get(self, requester_id: str) -> Optional[PageSession]:
        now = self._clock()
        with self._lock:
            session = self._entries.get(requester_id)
            if session is None:
                return None
            if now - session.updated_at > self.ttl:
                del self._entries[requester_id]
                return None
            self._entries.move_to_end(requester_id)
            return session

    def advance(self, requester_id: str, page_index: int) -> Optional[List[Any]]:
        session = self.get(requester_id)
        if session is None or not 0 <= page_index < len(session.pages):
            return None
        with self._lock:
            session.index = page_index
            session.updated_at = self._clock()
        return session.pages[page_index]
