"""Assignment store: persistence contract for user/video edges.

The reconciliation engine only sees the :class:`AssignmentStore` protocol.
:class:`SqlAssignmentStore` implements it over an ``AsyncSession``; it
flushes but never commits, so every write joins the caller's transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from fleetlearn.assignments.exceptions import NotFound, StoreError
from fleetlearn.assignments.schemas import AnchorKind, Edge, EdgeInit, EdgeUpdate, EntityRef
from fleetlearn.db.models import User, UserVideo, Video

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

logger = structlog.get_logger()


class AssignmentStore(Protocol):
    """CRUD contract over the user/video edge relation."""

    async def lock_anchor(self, anchor: EntityRef) -> bool: ...

    async def list_edges_by_user(self, user_id: str) -> list[Edge]: ...

    async def list_edges_by_video(self, video_id: str) -> list[Edge]: ...

    async def delete_edges(self, anchor: EntityRef, counterpart_ids: set[str]) -> None: ...

    async def insert_edges(self, new_edges: list[EdgeInit]) -> list[Edge]: ...

    async def update_edge(self, edge_id: str, patch: EdgeUpdate) -> Edge: ...

    async def get_edge(self, edge_id: str) -> Edge | None: ...

    async def find_edge(self, user_id: str, video_id: str) -> Edge | None: ...


def _columns(kind: AnchorKind) -> tuple[InstrumentedAttribute[str], InstrumentedAttribute[str]]:
    """(anchor column, counterpart column) for an anchor kind."""
    if kind is AnchorKind.USER:
        return UserVideo.user_id, UserVideo.video_id
    return UserVideo.video_id, UserVideo.user_id


class SqlAssignmentStore:
    """SQLAlchemy implementation of :class:`AssignmentStore`."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def lock_anchor(self, anchor: EntityRef) -> bool:
        """Row-lock the anchor for the rest of the transaction. False if it does not exist."""
        model = User if anchor.kind is AnchorKind.USER else Video
        try:
            result = await self.db.execute(select(model.id).where(model.id == anchor.id).with_for_update())
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to lock {anchor.kind.value} {anchor.id}") from e
        return result.scalar_one_or_none() is not None

    async def list_edges_by_user(self, user_id: str) -> list[Edge]:
        return await self._list(UserVideo.user_id == user_id)

    async def list_edges_by_video(self, video_id: str) -> list[Edge]:
        return await self._list(UserVideo.video_id == video_id)

    async def _list(self, criterion: ColumnElement[bool]) -> list[Edge]:
        try:
            result = await self.db.execute(select(UserVideo).where(criterion).order_by(UserVideo.id))
        except SQLAlchemyError as e:
            raise StoreError("Failed to fetch assignments") from e
        return [Edge.model_validate(row) for row in result.scalars().all()]

    async def delete_edges(self, anchor: EntityRef, counterpart_ids: set[str]) -> None:
        """Delete the edges between ``anchor`` and each of ``counterpart_ids``."""
        if not counterpart_ids:
            return
        anchor_col, counterpart_col = _columns(anchor.kind)
        try:
            await self.db.execute(
                delete(UserVideo).where(anchor_col == anchor.id, counterpart_col.in_(counterpart_ids))
            )
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning("assignment_delete_failed", anchor=anchor.id, count=len(counterpart_ids), error=str(e))
            raise StoreError("Failed to remove assignments") from e

    async def insert_edges(self, new_edges: list[EdgeInit]) -> list[Edge]:
        if not new_edges:
            return []
        rows = [UserVideo(**init.model_dump()) for init in new_edges]
        try:
            self.db.add_all(rows)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning("assignment_insert_failed", count=len(new_edges), error=str(e))
            raise StoreError("Failed to add assignments") from e
        return [Edge.model_validate(row) for row in rows]

    async def update_edge(self, edge_id: str, patch: EdgeUpdate) -> Edge:
        row = await self._get_row(edge_id)
        if row is None:
            raise NotFound("assignment", edge_id)
        for field, value in patch.changes().items():
            setattr(row, field, value)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise StoreError("Failed to update assignment") from e
        return Edge.model_validate(row)

    async def get_edge(self, edge_id: str) -> Edge | None:
        row = await self._get_row(edge_id)
        return Edge.model_validate(row) if row is not None else None

    async def find_edge(self, user_id: str, video_id: str) -> Edge | None:
        try:
            result = await self.db.execute(
                select(UserVideo).where(UserVideo.user_id == user_id, UserVideo.video_id == video_id)
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to fetch assignment") from e
        row = result.scalar_one_or_none()
        return Edge.model_validate(row) if row is not None else None

    async def _get_row(self, edge_id: str) -> UserVideo | None:
        try:
            return await self.db.get(UserVideo, edge_id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to fetch assignment") from e
