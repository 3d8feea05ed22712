import pytest

from bakery_pos.services import shift_service
from bakery_pos.validation import NotFoundError, ValidationError


def test_create_defaults_and_labels(fake_store):
    shift = shift_service.create_shift(fake_store, {"name": "Cô Hoa", "role": "Thợ bánh"})

    data = shift_service.shift_to_dict(shift)
    assert data["time"] == "05:00 - 12:00"
    assert data["status"] == "upcoming"
    assert data["period"] == "Ca Sáng"
    assert data["status_label"] == "Sắp tới"


@pytest.mark.parametrize("time_range,label", [
    ("05:00 - 12:00", "Ca Sáng"),
    ("12:00 - 18:00", "Ca Chiều"),
    ("18:00 - 22:00", "Ca Tối"),
])
def test_shift_period(time_range, label):
    assert shift_service.shift_period(time_range) == label


def test_update_status_validated(fake_store):
    shift = shift_service.create_shift(fake_store, {"name": "Anh Nam", "role": "Bán hàng"})

    assert shift_service.update_shift(fake_store, shift.id, {"status": "active"}).status == "active"
    with pytest.raises(ValidationError):
        shift_service.update_shift(fake_store, shift.id, {"status": "sleeping"})


def test_stats_count_each_status(fake_store):
    shift_service.create_shift(fake_store, {"name": "A", "role": "x", "status": "active"})
    shift_service.create_shift(fake_store, {"name": "B", "role": "x"})
    shift_service.create_shift(fake_store, {"name": "C", "role": "x", "status": "completed"})

    stats = shift_service.shift_stats(shift_service.list_shifts(fake_store))

    assert stats == {"total": 3, "active": 1, "upcoming": 1, "completed": 1}


def test_delete_missing_shift(fake_store):
    with pytest.raises(NotFoundError):
        shift_service.delete_shift(fake_store, 404)
