"""Assignment error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from fleetlearn.assignments.schemas import EntityRef

ReconcilePhase = Literal["remove", "add"]


class StoreError(Exception):
    """Opaque failure from the assignment store (network, timeout, constraint)."""


class NotFound(LookupError):  # noqa: N818
    """The requested user, video or assignment does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found")


class ReconciliationFailed(Exception):  # noqa: N818
    """One half of the remove/add sequence failed.

    ``phase == "remove"`` means nothing was added. ``phase == "add"`` means the
    removals were already applied within the current transaction; re-running
    the reconciliation with the same desired set is always safe.
    """

    def __init__(self, phase: ReconcilePhase, anchor: EntityRef) -> None:
        self.phase = phase
        self.anchor = anchor
        super().__init__(f"Failed to {phase} video assignments")
