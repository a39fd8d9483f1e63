"""Reconciliation engine tests against an in-memory store."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from fleetlearn.assignments.exceptions import NotFound, ReconciliationFailed, StoreError
from fleetlearn.assignments.reconciler import ReconciliationEngine
from fleetlearn.assignments.schemas import AnchorKind, Edge, EdgeInit, EdgeUpdate, EntityRef
from fleetlearn.assignments.stats import project_video_stats

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
EARLIER = NOW - timedelta(days=30)


class MemoryStore:
    """AssignmentStore over a dict, counting writes and optionally failing them."""

    def __init__(self, users: set[str], videos: set[str]) -> None:
        self.users = users
        self.videos = videos
        self.edges: dict[str, Edge] = {}
        self.writes = 0
        self.fail_delete = False
        self.fail_insert = False
        self._ids = itertools.count(1)

    def seed(self, user_id: str, video_id: str, **fields: object) -> Edge:
        edge = Edge(id=f"e{next(self._ids)}", user_id=user_id, video_id=video_id, **fields)
        self.edges[edge.id] = edge
        return edge

    async def lock_anchor(self, anchor: EntityRef) -> bool:
        pool = self.users if anchor.kind is AnchorKind.USER else self.videos
        return anchor.id in pool

    async def list_edges_by_user(self, user_id: str) -> list[Edge]:
        return [e for e in self.edges.values() if e.user_id == user_id]

    async def list_edges_by_video(self, video_id: str) -> list[Edge]:
        return [e for e in self.edges.values() if e.video_id == video_id]

    async def delete_edges(self, anchor: EntityRef, counterpart_ids: set[str]) -> None:
        if self.fail_delete:
            raise StoreError("delete failed")
        if anchor.kind is AnchorKind.USER:
            owned = await self.list_edges_by_user(anchor.id)
        else:
            owned = await self.list_edges_by_video(anchor.id)
        for edge in owned:
            if anchor.counterpart_of(edge) in counterpart_ids:
                del self.edges[edge.id]
                self.writes += 1

    async def insert_edges(self, new_edges: list[EdgeInit]) -> list[Edge]:
        if self.fail_insert:
            raise StoreError("insert failed")
        inserted = [self.seed(**init.model_dump()) for init in new_edges]
        self.writes += len(inserted)
        return inserted

    async def update_edge(self, edge_id: str, patch: EdgeUpdate) -> Edge:
        edge = self.edges[edge_id].model_copy(update=patch.changes())
        self.edges[edge_id] = edge
        self.writes += 1
        return edge

    async def get_edge(self, edge_id: str) -> Edge | None:
        return self.edges.get(edge_id)

    async def find_edge(self, user_id: str, video_id: str) -> Edge | None:
        return next((e for e in self.edges.values() if e.user_id == user_id and e.video_id == video_id), None)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(users={"A", "B", "C", "D"}, videos={"V", "W", "X"})


def _counterparts(edges: list[Edge], anchor: EntityRef) -> set[str]:
    return {anchor.counterpart_of(e) for e in edges}


class TestReconcileVideo:
    @pytest.mark.asyncio
    async def test_replaces_user_set(self, store: MemoryStore) -> None:
        """V has {A, B(completed), C}; reconcile to {B, C, D}."""
        store.seed("A", "V", assigned_date=EARLIER)
        kept_b = store.seed("B", "V", assigned_date=EARLIER, is_completed=True, completed_date=EARLIER)
        kept_c = store.seed("C", "V", assigned_date=EARLIER)
        anchor = EntityRef.video("V")

        result = await ReconciliationEngine(store).reconcile(anchor, ["B", "C", "D"], now=NOW)

        assert result.added == {"D"}
        assert result.removed == {"A"}
        assert _counterparts(result.edges, anchor) == {"B", "C", "D"}
        by_user = {e.user_id: e for e in result.edges}
        assert by_user["B"] == kept_b
        assert by_user["C"] == kept_c
        assert by_user["D"].is_completed is False
        assert by_user["D"].assigned_date == NOW

        stats = project_video_stats(result.edges)
        assert stats.assigned_count == 3
        assert stats.completion_rate == 33

    @pytest.mark.asyncio
    async def test_second_run_performs_no_writes(self, store: MemoryStore) -> None:
        engine = ReconciliationEngine(store)
        await engine.reconcile(EntityRef.video("V"), ["A", "B"], now=NOW)
        writes = store.writes

        result = await engine.reconcile(EntityRef.video("V"), ["B", "A"], now=NOW)

        assert store.writes == writes
        assert not result.changed
        assert len(result.edges) == 2

    @pytest.mark.asyncio
    async def test_duplicate_ids_collapse(self, store: MemoryStore) -> None:
        result = await ReconciliationEngine(store).reconcile(EntityRef.video("V"), ["A", "A", "B"], now=NOW)
        assert len(result.edges) == 2

    @pytest.mark.asyncio
    async def test_empty_desired_set_removes_everything(self, store: MemoryStore) -> None:
        store.seed("A", "V")
        store.seed("B", "V")
        store.seed("A", "W")

        result = await ReconciliationEngine(store).reconcile(EntityRef.video("V"), [], now=NOW)

        assert result.edges == []
        assert result.removed == {"A", "B"}
        # other videos' edges survive
        assert len(await store.list_edges_by_video("W")) == 1


class TestReconcileUser:
    @pytest.mark.asyncio
    async def test_symmetric_for_users(self, store: MemoryStore) -> None:
        watched = store.seed("A", "V", assigned_date=EARLIER, last_watched=EARLIER, last_action="watched")
        store.seed("A", "W", assigned_date=EARLIER)
        anchor = EntityRef.user("A")

        result = await ReconciliationEngine(store).reconcile(anchor, ["V", "X"], now=NOW)

        assert result.added == {"X"}
        assert result.removed == {"W"}
        assert _counterparts(result.edges, anchor) == {"V", "X"}
        assert next(e for e in result.edges if e.video_id == "V") == watched

    @pytest.mark.asyncio
    async def test_unknown_anchor_raises_not_found(self, store: MemoryStore) -> None:
        with pytest.raises(NotFound) as exc_info:
            await ReconciliationEngine(store).reconcile(EntityRef.user("nobody"), ["V"], now=NOW)
        assert exc_info.value.entity == "user"
        assert store.writes == 0


class TestReconcileFailures:
    @pytest.mark.asyncio
    async def test_remove_failure_skips_add(self, store: MemoryStore) -> None:
        store.seed("A", "V")
        store.fail_delete = True

        with pytest.raises(ReconciliationFailed) as exc_info:
            await ReconciliationEngine(store).reconcile(EntityRef.video("V"), ["B"], now=NOW)

        assert exc_info.value.phase == "remove"
        assert str(exc_info.value) == "Failed to remove video assignments"
        assert isinstance(exc_info.value.__cause__, StoreError)
        assert _counterparts(await store.list_edges_by_video("V"), EntityRef.video("V")) == {"A"}
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_add_failure_reports_add_phase(self, store: MemoryStore) -> None:
        store.seed("A", "V")
        store.fail_insert = True

        with pytest.raises(ReconciliationFailed) as exc_info:
            await ReconciliationEngine(store).reconcile(EntityRef.video("V"), ["B"], now=NOW)

        assert exc_info.value.phase == "add"
        assert str(exc_info.value) == "Failed to add video assignments"
        assert exc_info.value.anchor == EntityRef.video("V")
