# library_portal/models/storage_entry.py
from datetime import datetime
from library_portal.extensions import db


class StorageEntry(db.Model):
    """One persisted key (loggedInStudents, allStudents, ...) holding a JSON document."""

    __tablename__ = "storage_entries"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False, default="null")

    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
