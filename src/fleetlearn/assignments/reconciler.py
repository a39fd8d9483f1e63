"""Assignment reconciliation: make stored edges match a desired counterpart set.

Given an anchor (a user or a video) and the set of counterpart ids it should
be assigned to, compute the minimal add/remove diff against the stored edges
and apply it. Edges whose counterpart stays assigned are never touched, so
completion state and timestamps survive a re-assignment.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from fleetlearn.assignments.exceptions import NotFound, ReconciliationFailed, StoreError
from fleetlearn.assignments.schemas import AnchorKind, Edge, EdgeInit, EntityRef
from fleetlearn.assignments.store import AssignmentStore

logger = structlog.get_logger()


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation."""

    anchor: EntityRef
    edges: list[Edge]
    added: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class ReconciliationEngine:
    """Diff-and-apply over an :class:`AssignmentStore`.

    Steps: lock the anchor, read its current edges, delete edges to
    counterparts no longer wanted, insert edges to new counterparts, re-read.
    A failed delete aborts before anything is inserted. Running the same
    reconciliation twice performs no writes the second time.
    """

    def __init__(self, store: AssignmentStore) -> None:
        self.store = store

    async def reconcile(
        self,
        anchor: EntityRef,
        desired_counterparts: Iterable[str],
        now: datetime | None = None,
    ) -> ReconciliationResult:
        desired = set(desired_counterparts)

        if not await self.store.lock_anchor(anchor):
            raise NotFound(anchor.kind.value, anchor.id)

        current_edges = await self._load(anchor)
        current = {anchor.counterpart_of(edge) for edge in current_edges}

        to_add = desired - current
        to_remove = current - desired

        if to_remove:
            try:
                await self.store.delete_edges(anchor, to_remove)
            except StoreError as e:
                logger.error("reconcile_remove_failed", anchor_kind=anchor.kind.value, anchor_id=anchor.id)
                raise ReconciliationFailed("remove", anchor) from e

        if to_add:
            now = now or datetime.now(timezone.utc)
            new_edges = [EdgeInit.for_anchor(anchor, counterpart_id, now) for counterpart_id in sorted(to_add)]
            try:
                await self.store.insert_edges(new_edges)
            except StoreError as e:
                logger.error(
                    "reconcile_add_failed",
                    anchor_kind=anchor.kind.value,
                    anchor_id=anchor.id,
                    removed=len(to_remove),
                )
                raise ReconciliationFailed("add", anchor) from e

        edges = await self._load(anchor) if (to_add or to_remove) else current_edges
        return ReconciliationResult(anchor=anchor, edges=edges, added=to_add, removed=to_remove)

    async def _load(self, anchor: EntityRef) -> list[Edge]:
        if anchor.kind is AnchorKind.USER:
            return await self.store.list_edges_by_user(anchor.id)
        return await self.store.list_edges_by_video(anchor.id)
