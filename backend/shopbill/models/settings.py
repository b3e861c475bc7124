from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class ShopSetting(db.Model):
    """
    Singleton row (id="default") holding shop identity and first-run state as a
    JSON document. Shape is owned by services/settings_service.py.
    """
    __tablename__ = "settings"

    id = db.Column(db.String(32), primary_key=True, default="default")
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "data": self.data,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
