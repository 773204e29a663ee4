from flask import Blueprint, jsonify, request

from library_portal.services.notification_service import NotificationService, get_notifier
from library_portal.tasks.overdue_check import run_overdue_sweep
from library_portal.utils.auth import librarian_required

notif_bp = Blueprint("notifications", __name__)


@notif_bp.post("/run-overdue-check")
@librarian_required
def run_overdue_check():
    report = run_overdue_sweep()
    return jsonify({"success": True, "message": "Overdue check completed", "data": report.to_dict()})


@notif_bp.get("/history")
@librarian_required
def history():
    return jsonify({"success": True, "data": [m.to_dict() for m in get_notifier().history()]})


@notif_bp.post("/alert")
@librarian_required
def manual_alert():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    title = (data.get("title") or "").strip()
    if not email or not title:
        return jsonify({"success": False, "message": "email and title are required"}), 400

    if NotificationService.send_overdue_alert(email, title):
        return jsonify({"success": True, "message": "Overdue alert sent successfully!"})
    return jsonify({"success": False, "message": "Failed to send overdue alert."}), 404


@notif_bp.post("/bulk")
@librarian_required
def bulk():
    data = request.get_json(silent=True) or {}
    recipients = data.get("recipients")
    if not isinstance(recipients, list) or not recipients:
        return jsonify({"success": False, "message": "recipients list is required"}), 400
    return jsonify({"success": True, "data": NotificationService.send_bulk(recipients)})
