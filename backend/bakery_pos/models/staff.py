from __future__ import annotations

from ..extensions import db
from bakery_pos.time_utils import to_utc_z, utcnow


class Shift(db.Model):
    """Roster entry: who works which time slot today."""
    __tablename__ = "shifts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(64), nullable=False)
    time = db.Column(db.String(32), nullable=False)  # "06:00 - 14:00"
    status = db.Column(db.String(16), nullable=False, default="upcoming")  # active, upcoming, completed
    image = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "time": self.time,
            "status": self.status,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
        }
