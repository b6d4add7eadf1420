from datetime import datetime, timezone
from codechat.models.db import db


def _utcnow():
    return datetime.now(timezone.utc)


class StoredSetting(db.Model):
    __tablename__ = "stored_settings"

    key = db.Column(db.String(120), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
