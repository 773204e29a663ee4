import json
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from library_portal import create_app
from library_portal.config import Config
from library_portal.models.student import StudentSession
from library_portal.services.borrow_service import LoanLedger

STUDENT_FORM = {
    "firstName": "Asha",
    "lastName": "Rao",
    "rollNo": "CS-042",
    "mobileNo": "9876543210",
    "class": "BSc CS",
    "year": "2",
    "email": "asha@example.com",
    "password": "secret123",
    "confirmPassword": "secret123",
}

LIBRARIAN_FORM = {
    "firstName": "Mira",
    "lastName": "Sen",
    "employeeId": "EMP-7",
    "email": "mira@library.test",
    "password": "shelves",
    "confirmPassword": "shelves",
}

DAY0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeSmsGateway:
    """Answers both the relay endpoint and the Twilio Messages resource."""

    def __init__(self):
        self.relay_ok = True
        self.twilio_ok = True
        self.relay_requests = []
        self.twilio_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/api/send-sms"):
            body = json.loads(request.content)
            self.relay_requests.append(body)
            if not self.relay_ok:
                return httpx.Response(500, json={"error": "Failed to send SMS"})
            return httpx.Response(200, json={"success": True, "messageId": "SMrelay", "status": "queued"})

        if request.url.path.endswith("/Messages.json"):
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            self.twilio_requests.append(form)
            if not self.twilio_ok:
                return httpx.Response(401, json={"message": "Authenticate", "code": 20003})
            return httpx.Response(201, json={"sid": "SM123", "status": "queued", "to": form.get("To")})

        return httpx.Response(404, json={"error": "not found"})

    @property
    def relayed_messages(self):
        return [r["message"] for r in self.relay_requests]


def make_config(db_uri: str, transport: httpx.BaseTransport):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        SQLALCHEMY_DATABASE_URI = db_uri
        SCHEDULER_ENABLED = False
        SMS_ASYNC = False
        SMS_MAX_ATTEMPTS = 2
        SCANNER_DECODER = "fixture"
        SMS_HTTP_TRANSPORT = transport

    return TestConfig


@pytest.fixture
def gateway():
    return FakeSmsGateway()


@pytest.fixture
def app(tmp_path, gateway):
    app = create_app(make_config(f"sqlite:///{tmp_path / 'portal.db'}", httpx.MockTransport(gateway)))
    with app.app_context():
        yield app
    app.extensions["notifications"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def student_client(app):
    c = app.test_client()
    assert c.post("/auth/student/register", json=STUDENT_FORM).status_code == 201
    r = c.post("/auth/student/login", json={"email": STUDENT_FORM["email"], "password": STUDENT_FORM["password"]})
    assert r.status_code == 200
    return c


@pytest.fixture
def librarian_client(app):
    c = app.test_client()
    assert c.post("/auth/librarian/register", json=LIBRARIAN_FORM).status_code == 201
    r = c.post("/auth/librarian/login", json={"email": LIBRARIAN_FORM["email"], "password": LIBRARIAN_FORM["password"]})
    assert r.status_code == 200
    return c


@pytest.fixture
def make_student(app):
    def _make(email="ravi@example.com", name="Ravi Kumar", mobile_no="+919812345678", login_time=DAY0):
        return LoanLedger.upsert_session(StudentSession(
            id=0,
            name=name,
            email=email,
            roll_no="CS-007",
            mobile_no=mobile_no,
            login_time=login_time,
        ))
    return _make


@pytest.fixture
def student_form():
    return dict(STUDENT_FORM)
