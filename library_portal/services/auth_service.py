from werkzeug.security import check_password_hash, generate_password_hash

from library_portal.models.student import StudentSession
from library_portal.repositories.student_repo import StudentRepo
from library_portal.services.borrow_service import LoanLedger
from library_portal.services.notification_service import NotificationService
from library_portal.services.sms_service import format_phone_number, is_valid_phone_number
from library_portal.utils.dates import to_iso, utcnow

STUDENT_FIELDS = ["firstName", "lastName", "rollNo", "mobileNo", "class", "year", "email", "password"]


class FormError(ValueError):
    """Field-level validation errors: {field: message}."""

    def __init__(self, errors: dict):
        super().__init__("Invalid form")
        self.errors = errors


def _clean(data: dict) -> dict:
    return {k: (v.strip() if isinstance(v, str) and k not in ("password", "confirmPassword") else v)
            for k, v in (data or {}).items()}


class AuthService:
    @staticmethod
    def validate_student(data: dict, country_code: str = "+91") -> dict:
        errors = {}
        if not data.get("firstName"):
            errors["firstName"] = "First name is required"
        if not data.get("lastName"):
            errors["lastName"] = "Last name is required"
        if not data.get("rollNo"):
            errors["rollNo"] = "Roll number is required"
        if not data.get("mobileNo"):
            errors["mobileNo"] = "Mobile number is required"
        elif not is_valid_phone_number(data["mobileNo"], country_code):
            errors["mobileNo"] = "Please enter a valid mobile number (e.g., +919876543210 or 9876543210)"
        if not data.get("class"):
            errors["class"] = "Class is required"
        if not data.get("year"):
            errors["year"] = "Year is required"
        if not data.get("email"):
            errors["email"] = "Email is required"
        if not data.get("password"):
            errors["password"] = "Password is required"
        if data.get("password") != data.get("confirmPassword"):
            errors["confirmPassword"] = "Passwords do not match"
        return errors

    @staticmethod
    def register_student(data: dict, country_code: str = "+91") -> dict:
        data = _clean(data)
        errors = AuthService.validate_student(data, country_code)
        if not errors.get("email") and StudentRepo.get_registered(data["email"]):
            errors["email"] = "An account with this email already exists"
        if errors:
            raise FormError(errors)

        mobile_no = format_phone_number(data["mobileNo"], country_code)
        profile = {
            "email": data["email"],
            "firstName": data["firstName"],
            "lastName": data["lastName"],
            "rollNo": data["rollNo"],
            "mobileNo": mobile_no,
            "class": data["class"],
            "year": data["year"],
            "userType": "student",
        }
        password_hash = generate_password_hash(data["password"])

        StudentRepo.save_student_user({**profile, "password_hash": password_hash})
        StudentRepo.add_registered({**profile, "password_hash": password_hash, "registeredAt": to_iso(utcnow())})

        NotificationService.notify_account_created(mobile_no, data["firstName"])
        return profile

    @staticmethod
    def register_librarian(data: dict) -> dict:
        data = _clean(data)
        errors = {}
        for field, label in (("firstName", "First name"), ("lastName", "Last name"),
                             ("employeeId", "Employee ID"), ("email", "Email"), ("password", "Password")):
            if not data.get(field):
                errors[field] = f"{label} is required"
        if data.get("password") != data.get("confirmPassword"):
            errors["confirmPassword"] = "Passwords do not match"
        if errors:
            raise FormError(errors)

        profile = {
            "email": data["email"],
            "firstName": data["firstName"],
            "lastName": data["lastName"],
            "employeeId": data["employeeId"],
            "userType": "librarian",
        }
        StudentRepo.save_librarian_user({**profile, "password_hash": generate_password_hash(data["password"])})
        return profile

    @staticmethod
    def login_student(email: str, password: str) -> StudentSession:
        registered = StudentRepo.get_registered(email)
        if not registered or not check_password_hash(registered.get("password_hash", ""), password or ""):
            raise ValueError("Invalid email or password")

        session_entry = StudentSession(
            id=0,
            name=f"{registered.get('firstName', '')} {registered.get('lastName', '')}".strip(),
            email=email,
            roll_no=registered.get("rollNo", ""),
            mobile_no=registered.get("mobileNo", ""),
            student_class=registered.get("class", ""),
            year=registered.get("year", ""),
            login_time=utcnow(),
            is_active=True,
        )
        return LoanLedger.upsert_session(session_entry)

    @staticmethod
    def login_librarian(email: str, password: str) -> dict:
        librarian = StudentRepo.get_librarian_user()
        if (not librarian or librarian.get("email") != email
                or not check_password_hash(librarian.get("password_hash", ""), password or "")):
            raise ValueError("Invalid email or password")
        return {k: v for k, v in librarian.items() if k != "password_hash"}
