# workdesk/hierarchy/status.py
"""
Parent status derived from children.

Rules, first match wins:
1. all children closed                  -> organization's "done" status
2. any child open, not cancelled and
   not in the "not started" status, or
   finished children next to ones not
   started yet                          -> "in progress" status
3. all children "not started"           -> "not started" status
4. anything else                        -> leave the parent alone
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .records import StatusChange, TaskRecord
from .tree import build_tree

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusValue:
    id: int
    name: str
    is_closed: bool = False
    is_cancelled: bool = False
    sort_order: int = 0


class StatusCatalog:
    """
    One organization's task status values plus the three roles the roll-up
    needs: done, in progress and not started. Any role may be missing, in
    which case the rule that targets it never fires.
    """

    def __init__(self, values: Iterable[StatusValue]):
        self.values = sorted(values, key=lambda v: (v.sort_order, v.id))
        self._by_id = {v.id: v for v in self.values}
        self.done_id = self._find_done()
        self.in_progress_id = self._find_in_progress()
        self.not_started_id = self._find_not_started()

    def _find_done(self) -> int | None:
        return next((v.id for v in self.values if v.is_closed), None)

    def _find_in_progress(self) -> int | None:
        for v in self.values:
            if "progress" in (v.name or "").lower():
                return v.id
        return next((v.id for v in self.values if v.sort_order == 2), None)

    def _find_not_started(self) -> int | None:
        for v in self.values:
            if not v.is_closed and not v.is_cancelled and "to do" in (v.name or "").lower():
                return v.id
        return self.values[0].id if self.values else None

    def get(self, status_id: int | None) -> StatusValue | None:
        return self._by_id.get(status_id)

    def name_of(self, status_id: int | None) -> str | None:
        v = self._by_id.get(status_id)
        return v.name if v else None

    def is_closed(self, status_id: int | None) -> bool:
        v = self._by_id.get(status_id)
        return bool(v and v.is_closed)

    def is_cancelled(self, status_id: int | None) -> bool:
        v = self._by_id.get(status_id)
        return bool(v and v.is_cancelled)

    def is_not_started(self, status_id: int | None) -> bool:
        return status_id is not None and status_id == self.not_started_id

    def is_in_progress(self, status_id: int | None) -> bool:
        return not (self.is_closed(status_id) or self.is_cancelled(status_id) or self.is_not_started(status_id))

    def _has_started(self, child_status_ids: list[int | None]) -> bool:
        # Work is under way when a child is in progress, or when some children
        # are finished while others have not started yet.
        if any(self.is_in_progress(s) for s in child_status_ids):
            return True
        return any(self.is_closed(s) for s in child_status_ids) and any(
            self.is_not_started(s) for s in child_status_ids
        )

    def derive_parent_status(self, child_status_ids: list[int | None]) -> int | None:
        """Status the parent should carry, or None when no rule applies."""
        if not child_status_ids:
            return None
        if self.done_id is not None and all(self.is_closed(s) for s in child_status_ids):
            return self.done_id
        if self.in_progress_id is not None and self._has_started(child_status_ids):
            return self.in_progress_id
        if self.not_started_id is not None and all(
            self.is_not_started(s) and not self.is_closed(s) and not self.is_cancelled(s)
            for s in child_status_ids
        ):
            return self.not_started_id
        return None


def sync_status_from_children(tasks: Iterable[TaskRecord], catalog: StatusCatalog) -> list[StatusChange]:
    """Return the parents whose derived status differs from the current one."""
    tree = build_tree(tasks)
    changes: list[StatusChange] = []
    for parent_id in tree.parents():
        parent = tree.get(parent_id)
        child_statuses = [tree.get(c).status_id for c in tree.children(parent_id)]
        new_status = catalog.derive_parent_status(child_statuses)
        if new_status is None or new_status == parent.status_id:
            continue
        changes.append(
            StatusChange(
                task_id=parent_id,
                old_status_id=parent.status_id,
                new_status_id=new_status,
                old_status_name=catalog.name_of(parent.status_id),
                new_status_name=catalog.name_of(new_status),
            )
        )
    log.debug("status roll-up: %d parent status change(s)", len(changes))
    return changes
