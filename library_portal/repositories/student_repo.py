from typing import Optional

from library_portal.repositories.storage_repo import StorageRepo

REGISTRY_KEY = "allStudents"
STUDENT_USER_KEY = "studentUser"
LIBRARIAN_USER_KEY = "librarianUser"


class StudentRepo:
    @staticmethod
    def list_registered() -> list:
        rows = StorageRepo.get_json(REGISTRY_KEY, [])
        return [x for x in rows if isinstance(x, dict)] if isinstance(rows, list) else []

    @staticmethod
    def get_registered(email: str) -> Optional[dict]:
        return next((x for x in StudentRepo.list_registered() if x.get("email") == email), None)

    @staticmethod
    def add_registered(student: dict) -> bool:
        rows = StudentRepo.list_registered()
        if any(x.get("email") == student.get("email") for x in rows):
            return False
        rows.append(student)
        StorageRepo.set_json(REGISTRY_KEY, rows)
        return True

    @staticmethod
    def save_student_user(data: dict):
        StorageRepo.set_json(STUDENT_USER_KEY, data)

    @staticmethod
    def save_librarian_user(data: dict):
        StorageRepo.set_json(LIBRARIAN_USER_KEY, data)

    @staticmethod
    def get_librarian_user() -> Optional[dict]:
        return StorageRepo.get_json(LIBRARIAN_USER_KEY)
