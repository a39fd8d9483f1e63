"""Assignment service: reconciliation, stats and progress for request handlers."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from fleetlearn.assignments import renewal
from fleetlearn.assignments.exceptions import NotFound
from fleetlearn.assignments.reconciler import ReconciliationEngine, ReconciliationResult
from fleetlearn.assignments.schemas import Edge, EdgeUpdate, EntityRef, UserStats, VideoMeta, VideoStats
from fleetlearn.assignments.stats import project_user_stats, project_video_stats
from fleetlearn.assignments.store import AssignmentStore, SqlAssignmentStore
from fleetlearn.db.models import User, Video

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class ProgressOutcome:
    """An applied watch or completion event."""

    edge: Edge
    update: EdgeUpdate
    renewed: bool = False


class AssignmentService:
    """Entry points the routers call. Role checks happen before this layer."""

    def __init__(self, db: AsyncSession, store: AssignmentStore | None = None) -> None:
        self.db = db
        self.store = store or SqlAssignmentStore(db)
        self.engine = ReconciliationEngine(self.store)

    # --- Reconciliation ---

    async def reconcile_user_assignments(
        self,
        user_id: str,
        desired_video_ids: Iterable[str],
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Make the user's assigned videos exactly ``desired_video_ids``."""
        result = await self.engine.reconcile(EntityRef.user(user_id), desired_video_ids, now=now)
        self._log_result(result)
        return result

    async def reconcile_video_assignments(
        self,
        video_id: str,
        desired_user_ids: Iterable[str],
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Make the video's assigned users exactly ``desired_user_ids``."""
        result = await self.engine.reconcile(EntityRef.video(video_id), desired_user_ids, now=now)
        self._log_result(result)
        return result

    @staticmethod
    def _log_result(result: ReconciliationResult) -> None:
        logger.info(
            "assignments_reconciled",
            anchor_kind=result.anchor.kind.value,
            anchor_id=result.anchor.id,
            added=len(result.added),
            removed=len(result.removed),
            total=len(result.edges),
        )

    # --- Stats ---

    async def get_video_stats(self, video_id: str) -> VideoStats:
        if await self.db.get(Video, video_id) is None:
            raise NotFound("video", video_id)
        return project_video_stats(await self.store.list_edges_by_video(video_id))

    async def get_user_stats(self, user_id: str) -> UserStats:
        if await self.db.get(User, user_id) is None:
            raise NotFound("user", user_id)
        return project_user_stats(await self.store.list_edges_by_user(user_id))

    # --- Progress ---

    def is_renewal_due(self, edge: Edge, video: VideoMeta, now: datetime | None = None) -> bool:
        return renewal.is_renewal_due(edge, video, now)

    async def record_watch(self, edge_id: str, video: VideoMeta, now: datetime | None = None) -> ProgressOutcome:
        """Apply a watch event, resetting the edge first if its renewal is due."""
        edge = await self._require_edge(edge_id)
        now = now or datetime.now(timezone.utc)
        renewed = renewal.is_renewal_due(edge, video, now)
        update = renewal.apply_watch_event(edge, video, now)
        updated = await self.store.update_edge(edge.id, update)
        if renewed:
            logger.info("assignment_renewed", edge_id=edge.id, user_id=edge.user_id, video_id=edge.video_id)
        return ProgressOutcome(edge=updated, update=update, renewed=renewed)

    async def record_completion(self, edge_id: str, now: datetime | None = None) -> ProgressOutcome:
        """Mark the edge completed. Does not touch ``assigned_date``."""
        edge = await self._require_edge(edge_id)
        update = renewal.apply_completion(now)
        updated = await self.store.update_edge(edge.id, update)
        return ProgressOutcome(edge=updated, update=update)

    async def record_watch_for(self, user_id: str, video_id: str, now: datetime | None = None) -> ProgressOutcome:
        """Watch event addressed by the (user, video) pair."""
        edge = await self._require_assignment(user_id, video_id)
        video = await self.db.get(Video, video_id)
        if video is None:
            raise NotFound("video", video_id)
        return await self.record_watch(edge.id, VideoMeta.model_validate(video), now)

    async def record_completion_for(
        self, user_id: str, video_id: str, now: datetime | None = None
    ) -> ProgressOutcome:
        """Completion addressed by the (user, video) pair."""
        edge = await self._require_assignment(user_id, video_id)
        return await self.record_completion(edge.id, now)

    async def _require_edge(self, edge_id: str) -> Edge:
        edge = await self.store.get_edge(edge_id)
        if edge is None:
            raise NotFound("assignment", edge_id)
        return edge

    async def _require_assignment(self, user_id: str, video_id: str) -> Edge:
        edge = await self.store.find_edge(user_id, video_id)
        if edge is None:
            raise NotFound("assignment", f"{user_id}:{video_id}")
        return edge
