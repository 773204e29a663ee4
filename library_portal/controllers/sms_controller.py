# library_portal/controllers/sms_controller.py
from flask import Blueprint, current_app, jsonify, request

from library_portal.services.sms_service import SmsTransportError, TwilioClient, resolve_recipient

sms_bp = Blueprint("sms", __name__)


def _twilio_client() -> TwilioClient:
    cfg = current_app.config
    return TwilioClient(
        account_sid=cfg["TWILIO_ACCOUNT_SID"],
        auth_token=cfg["TWILIO_AUTH_TOKEN"],
        from_number=cfg["TWILIO_FROM_NUMBER"],
        api_base=cfg.get("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01"),
        timeout=cfg.get("SMS_TIMEOUT", 10.0),
        transport=cfg.get("SMS_HTTP_TRANSPORT"),
    )


@sms_bp.post("/send-sms")
def send_sms():
    """
    Relay to Twilio.
    Body: { "phoneNumber": "...", "message": "..." }
    """
    try:
        data = request.get_json(silent=True) or {}
        raw_phone = data.get("phoneNumber")
        message = data.get("message")
        if not raw_phone or not message:
            return jsonify({"error": "Phone number and message are required"}), 400

        cfg = current_app.config
        phone = resolve_recipient(str(raw_phone), cfg.get("SMS_COUNTRY_CODE", "+91"), cfg.get("SMS_DEMO_NUMBER", "+15551234567"))
        current_app.logger.info(f"[sms] relay original={raw_phone} formatted={phone}")

        client = _twilio_client()
        try:
            result = client.send_message(phone, str(message))
        except SmsTransportError as e:
            current_app.logger.warning(f"[sms] relay upstream error: {e}")
            return jsonify({
                "error": "Failed to send SMS",
                "details": str(e),
                "to": phone,
                "originalNumber": raw_phone,
            }), 500
        finally:
            client.close()

        return jsonify({
            "success": True,
            "messageId": result.get("sid"),
            "status": result.get("status"),
            "to": phone,
            "originalNumber": raw_phone,
        })
    except Exception as e:
        current_app.logger.exception(f"[sms] relay error: {e}")
        return jsonify({"error": "Internal server error", "details": str(e)}), 500
