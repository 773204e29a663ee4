from typing import List

from library_portal.models.student import StudentSession
from library_portal.repositories.storage_repo import StorageRepo

LEDGER_KEY = "loggedInStudents"


class LedgerRepo:
    @staticmethod
    def load() -> List[StudentSession]:
        raw = StorageRepo.get_json(LEDGER_KEY, [])
        if not isinstance(raw, list):
            return []
        return [StudentSession.from_raw(x) for x in raw if isinstance(x, dict)]

    @staticmethod
    def save(students: List[StudentSession]):
        # always the whole collection
        StorageRepo.set_json(LEDGER_KEY, [s.to_raw() for s in students])
