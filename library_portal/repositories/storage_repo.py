# library_portal/repositories/storage_repo.py
import json

from flask import current_app

from library_portal.extensions import db
from library_portal.models.storage_entry import StorageEntry


class StorageRepo:
    @staticmethod
    def get_json(key: str, default=None):
        """
        Missing key -> default.
        Unparsable value -> default (logged, never raised to the caller).
        """
        row = db.session.get(StorageEntry, key)
        if row is None:
            return default
        try:
            value = json.loads(row.value)
        except (TypeError, ValueError) as e:
            current_app.logger.warning(f"[storage] could not parse '{key}', treating as empty: {e}")
            return default
        return default if value is None else value

    @staticmethod
    def set_json(key: str, value):
        row = db.session.get(StorageEntry, key)
        payload = json.dumps(value)
        if row is None:
            db.session.add(StorageEntry(key=key, value=payload))
        else:
            row.value = payload
        db.session.commit()
