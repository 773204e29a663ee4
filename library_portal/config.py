import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "SQLALCHEMY_DATABASE_URI",
        "sqlite:///library_portal.db",
    )

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Session cookie carries currentUser
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "library_portal_session")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"

    # Twilio (placeholders do not work against the real API)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "your_account_sid")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "your_auth_token")
    TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER", "your_twilio_from_number")
    TWILIO_API_BASE = os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")

    # SMS dispatch
    SMS_RELAY_URL = os.getenv("SMS_RELAY_URL", "http://127.0.0.1:5000/api/send-sms")
    SMS_COUNTRY_CODE = os.getenv("SMS_COUNTRY_CODE", "+91")
    SMS_DEMO_NUMBER = os.getenv("SMS_DEMO_NUMBER", "+15551234567")
    SMS_TIMEOUT = float(os.getenv("SMS_TIMEOUT", "10"))
    SMS_ASYNC = _flag("SMS_ASYNC", "1")
    SMS_MAX_ATTEMPTS = int(os.getenv("SMS_MAX_ATTEMPTS", "3"))

    # Overdue check job
    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "1")
    OVERDUE_CHECK_MINUTES = int(os.getenv("OVERDUE_CHECK_MINUTES", "60"))

    # Barcode scanner: pyzbar / simulated / fixture
    SCANNER_DECODER = os.getenv("SCANNER_DECODER", "pyzbar")
    SCANNER_CAMERA_INDEX = int(os.getenv("SCANNER_CAMERA_INDEX", "0"))
    SCANNER_SEED = os.getenv("SCANNER_SEED")
