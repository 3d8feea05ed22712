# Overview: Staff shift roster (who works which slot) and its summary counts.

from __future__ import annotations

from ..datastore import DataStore
from ..models import Shift
from ..records import SHIFT_STATUSES, ShiftRecord
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_choice,
    validate_payload,
)

DEFAULT_TIME = "05:00 - 12:00"

SHIFT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role", "time", "status", "image"},
    required_on_create={"name", "role"},
)

STATUS_LABELS = {
    "active": "Đang làm",
    "upcoming": "Sắp tới",
    "completed": "Đã xong",
}


def shift_period(time_range: str) -> str:
    """Morning / afternoon / evening label from the slot's start time."""
    if "05:00" in (time_range or ""):
        return "Ca Sáng"
    if "12:00" in (time_range or ""):
        return "Ca Chiều"
    return "Ca Tối"


def _clean(payload: dict, partial: bool) -> dict:
    patch = validate_payload(model=Shift, payload=payload, policy=SHIFT_POLICY, partial=partial)
    if "status" in patch:
        require_choice(patch["status"], SHIFT_STATUSES, "status")
    return patch


def get_shift(store: DataStore, shift_id: int) -> ShiftRecord:
    row = store.first("shifts", {"id": shift_id})
    if row is None:
        raise NotFoundError("Shift not found")
    return ShiftRecord.from_row(row)


def list_shifts(store: DataStore) -> list[ShiftRecord]:
    return [ShiftRecord.from_row(r) for r in store.select("shifts", order=["time"])]


def create_shift(store: DataStore, payload: dict) -> ShiftRecord:
    patch = _clean(payload, partial=False)
    patch.setdefault("time", DEFAULT_TIME)
    patch.setdefault("status", "upcoming")
    row = store.insert("shifts", [{**patch, "created_at": utcnow()}])[0]
    return ShiftRecord.from_row(row)


def update_shift(store: DataStore, shift_id: int, payload: dict) -> ShiftRecord:
    get_shift(store, shift_id)
    patch = _clean(payload, partial=True)
    if not patch:
        raise ValidationError("Nothing to update")
    rows = store.update("shifts", {"id": shift_id}, patch)
    return ShiftRecord.from_row(rows[0])


def delete_shift(store: DataStore, shift_id: int) -> None:
    if not store.delete("shifts", {"id": shift_id}):
        raise NotFoundError("Shift not found")


def shift_stats(shifts: list[ShiftRecord]) -> dict:
    stats = {"total": len(shifts)}
    for status in SHIFT_STATUSES:
        stats[status] = sum(1 for s in shifts if s.status == status)
    return stats


def shift_to_dict(shift: ShiftRecord) -> dict:
    return {
        **shift.to_dict(),
        "period": shift_period(shift.time),
        "status_label": STATUS_LABELS.get(shift.status, shift.status),
    }
