from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Optional, Union

from vaani.conversation.session import SessionSnapshot


@dataclass(frozen=True)
class Notice:
    title: str
    message: str
    level: str = "warning"


BusItem = Union[SessionSnapshot, Notice]


class SessionBus:
    """
    Thread-safe handoff from the session thread -> UI thread.
    Session side pushes snapshots and notices. UI polls (non-blocking).

    Snapshots share a bounded queue that drops the oldest when full; every
    snapshot is a full state, so only the newest matters. Notices have their
    own unbounded queue and are never dropped.
    """
    def __init__(self, maxsize: int = 100):
        self.q: "queue.Queue[SessionSnapshot]" = queue.Queue(maxsize=maxsize)
        self.notices: "queue.Queue[Notice]" = queue.Queue()

    def push(self, item: BusItem) -> None:
        if isinstance(item, Notice):
            self.notices.put_nowait(item)
            return
        try:
            self.q.put_nowait(item)
        except queue.Full:
            # drop oldest snapshot to keep UI responsive
            try:
                _ = self.q.get_nowait()
            except queue.Empty:
                return
            try:
                self.q.put_nowait(item)
            except queue.Full:
                return

    def pop_notice(self) -> Optional[Notice]:
        try:
            return self.notices.get_nowait()
        except queue.Empty:
            return None

    def pop_snapshot(self) -> Optional[SessionSnapshot]:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return None

    def pop(self) -> Optional[BusItem]:
        """Pending notices come out before snapshots."""
        notice = self.pop_notice()
        if notice is not None:
            return notice
        return self.pop_snapshot()


def drain_session_bus(bus: SessionBus, max_items: int) -> tuple[Optional[SessionSnapshot], list[Notice]]:
    """Take every pending notice and up to max_items snapshots, keeping the newest."""
    notices: list[Notice] = []
    while True:
        notice = bus.pop_notice()
        if notice is None:
            break
        notices.append(notice)
    latest: Optional[SessionSnapshot] = None
    for _ in range(max(1, int(max_items))):
        snap = bus.pop_snapshot()
        if snap is None:
            break
        latest = snap
    return latest, notices
