# library_portal/services/sms_service.py
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

import httpx

from library_portal.utils.dates import utcnow

logger = logging.getLogger(__name__)

E164_RE = re.compile(r"^\+[1-9]\d{1,14}$")

SENT = "sent"
DELIVERED = "delivered"
FAILED = "failed"


class SmsTransportError(Exception):
    pass


def format_phone_number(phone: str, country_code: str = "+91") -> str:
    if not phone:
        return ""

    cleaned = re.sub(r"\D", "", phone)
    national = country_code.lstrip("+")

    # already carries the country code digits
    if cleaned.startswith(national) and len(cleaned) == len(national) + 10:
        return f"+{cleaned}"
    if len(cleaned) == 10:
        return f"{country_code}{cleaned}"
    if phone.startswith("+"):
        return phone
    return f"{country_code}{cleaned}"


def is_valid_phone_number(phone: str, country_code: str = "+91") -> bool:
    return bool(E164_RE.match(format_phone_number(phone, country_code)))


def resolve_recipient(phone: str, country_code: str, demo_number: str) -> str:
    """Formatted number, or the demo number when it does not pass E.164."""
    formatted = format_phone_number(phone, country_code)
    if not E164_RE.match(formatted):
        logger.warning(f"[sms] invalid phone number {phone!r}, using demo number {demo_number}")
        return demo_number
    return formatted


@dataclass(frozen=True)
class SmsMessage:
    to: str
    message: str
    timestamp: datetime
    status: str
    message_id: Optional[str] = None
    transport: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "to": self.to,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status,
            "messageId": self.message_id,
            "transport": self.transport,
        }


class MessageLog:
    """Process-lifetime record of every send attempt."""

    def __init__(self):
        self._items: List[SmsMessage] = []
        self._lock = threading.Lock()

    def append(self, entry: SmsMessage) -> SmsMessage:
        with self._lock:
            self._items.append(entry)
        return entry

    def history(self) -> List[SmsMessage]:
        with self._lock:
            items = list(self._items)
        return sorted(items, key=lambda m: m.timestamp, reverse=True)

    def __len__(self):
        with self._lock:
            return len(self._items)


class TwilioClient:
    """Minimal client for the Twilio Messages resource (basic auth, form body)."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str,
                 api_base: str = "https://api.twilio.com/2010-04-01",
                 timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.account_sid = account_sid
        self.from_number = from_number
        self._url = f"{api_base.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        self._client = httpx.Client(auth=(account_sid, auth_token), timeout=timeout, transport=transport)

    def send_message(self, to: str, body: str) -> dict:
        """Returns Twilio's JSON ({"sid", "status", ...}); raises SmsTransportError otherwise."""
        try:
            response = self._client.post(
                self._url,
                data={"From": self.from_number, "To": to, "Body": body},
            )
        except httpx.HTTPError as e:
            raise SmsTransportError(f"Twilio unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            raise SmsTransportError(f"Twilio API Error: {payload.get('message') or 'Unknown error'}")
        return payload

    def close(self):
        self._client.close()


class RelayTransport:
    """Primary path: the /api/send-sms relay endpoint."""

    name = "relay"

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def send(self, phone: str, message: str) -> SmsMessage:
        try:
            response = self._client.post(self.url, json={"phoneNumber": phone, "message": message})
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SmsTransportError(f"SMS relay failed: {e}") from e

        if not (response.is_success and result.get("success")):
            raise SmsTransportError(result.get("error") or "Failed to send SMS")

        status = DELIVERED if result.get("status") == DELIVERED else SENT
        return SmsMessage(phone, message, utcnow(), status, result.get("messageId"), self.name)

    def close(self):
        self._client.close()


class DirectTransport:
    """Fallback path: call Twilio from this process."""

    name = "direct"

    def __init__(self, client: TwilioClient):
        self.client = client

    def send(self, phone: str, message: str) -> SmsMessage:
        result = self.client.send_message(phone, message)
        status = DELIVERED if result.get("status") == DELIVERED else SENT
        return SmsMessage(phone, message, utcnow(), status, result.get("sid"), self.name)

    def close(self):
        self.client.close()


class SmsDispatcher:
    def __init__(self, transports: Iterable, log: MessageLog,
                 country_code: str = "+91", demo_number: str = "+15551234567"):
        self.transports = list(transports)
        self.log = log
        self.country_code = country_code
        self.demo_number = demo_number

    @classmethod
    def from_config(cls, config, log: MessageLog) -> "SmsDispatcher":
        http_transport = config.get("SMS_HTTP_TRANSPORT")
        timeout = config.get("SMS_TIMEOUT", 10.0)
        twilio = TwilioClient(
            account_sid=config["TWILIO_ACCOUNT_SID"],
            auth_token=config["TWILIO_AUTH_TOKEN"],
            from_number=config["TWILIO_FROM_NUMBER"],
            api_base=config.get("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01"),
            timeout=timeout,
            transport=http_transport,
        )
        return cls(
            transports=[
                RelayTransport(config["SMS_RELAY_URL"], timeout=timeout, transport=http_transport),
                DirectTransport(twilio),
            ],
            log=log,
            country_code=config.get("SMS_COUNTRY_CODE", "+91"),
            demo_number=config.get("SMS_DEMO_NUMBER", "+15551234567"),
        )

    def deliver(self, phone: str, message: str) -> SmsMessage:
        """
        Try every transport in order; each attempt lands in the log.
        If all of them fail the message is written to the application log instead.
        """
        to = resolve_recipient(phone, self.country_code, self.demo_number)

        for transport in self.transports:
            try:
                entry = transport.send(to, message)
            except SmsTransportError as e:
                logger.warning(f"[sms] {transport.name} transport failed for {to}: {e}")
                self.log.append(SmsMessage(to, message, utcnow(), FAILED, None, transport.name))
                continue
            logger.info(f"[sms] sent to {to} via {transport.name} (id={entry.message_id})")
            return self.log.append(entry)

        logger.info(f"[sms] fallback (local log) to={to} at={utcnow().isoformat()} message={message!r}")
        return SmsMessage(to, message, utcnow(), FAILED, None, "local")

    def send(self, phone: str, message: str) -> bool:
        # Delivery problems never reach the caller
        self.deliver(phone, message)
        return True

    def send_bulk(self, recipients: Iterable[dict]) -> dict:
        sent = failed = 0
        for r in recipients:
            if not isinstance(r, dict):
                logger.warning(f"[sms] bulk entry skipped, expected an object: {r!r}")
                failed += 1
                continue
            entry = self.deliver(r.get("phone") or "", r.get("message") or "")
            if entry.status == FAILED:
                failed += 1
            else:
                sent += 1
        return {"sent": sent, "failed": failed}

    def close(self):
        for transport in self.transports:
            close = getattr(transport, "close", None)
            if close:
                close()
