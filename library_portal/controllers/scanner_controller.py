from flask import Blueprint, current_app, jsonify, request

from library_portal.services.barcode_decoders import build_decoder
from library_portal.services.book_service import BookService
from library_portal.utils.auth import login_required

scanner_bp = Blueprint("scanner", __name__)


def _scanner():
    return current_app.extensions["scanner"]


def _state():
    s = _scanner()
    return {
        "state": s.state,
        "error": s.error,
        "error_message": s.error_message,
        "last_code": s.last_code,
        # on error the client offers these two actions
        "actions": ["retry", "manual"] if s.error else [],
    }


def _detected(result):
    payload = {"success": True, "scan": result.to_dict(), "scanner": _state()}
    try:
        payload["book"] = BookService.lookup_barcode(result.code).to_dict()
    except ValueError as e:
        payload["book"] = None
        payload["message"] = str(e)
    return jsonify(payload)


@scanner_bp.get("/state")
@login_required
def state():
    return jsonify({"success": True, "scanner": _state()})


@scanner_bp.post("/open")
@login_required
def open_scanner():
    ok = _scanner().open()
    return jsonify({"success": ok, "scanner": _state()}), (200 if ok else 503)


@scanner_bp.post("/retry")
@login_required
def retry():
    ok = _scanner().retry()
    return jsonify({"success": ok, "scanner": _state()}), (200 if ok else 503)


@scanner_bp.post("/scan")
@login_required
def scan():
    data = request.get_json(silent=True) or {}
    try:
        max_frames = int(data.get("max_frames", 300))
    except (TypeError, ValueError):
        return jsonify({"success": False, "message": "max_frames must be an integer"}), 400

    try:
        result = _scanner().scan(max_frames=max_frames)
    except ValueError as e:
        return jsonify({"success": False, "message": str(e), "scanner": _state()}), 409
    if result is None:
        code = 503 if _scanner().error else 200
        return jsonify({"success": False, "message": "No barcode detected", "scanner": _state()}), code
    return _detected(result)


@scanner_bp.post("/manual")
@login_required
def manual():
    data = request.get_json(silent=True) or {}
    try:
        result = _scanner().submit_manual(data.get("code") or "")
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    return _detected(result)


@scanner_bp.post("/close")
@login_required
def close():
    _scanner().close()
    return jsonify({"success": True, "scanner": _state()})


@scanner_bp.get("/history")
@login_required
def history():
    return jsonify({"success": True, "data": [r.to_dict() for r in _scanner().history()]})


@scanner_bp.post("/decode")
@login_required
def decode_upload():
    """Decode a single uploaded frame (multipart field 'image')."""
    upload = request.files.get("image")
    if upload is None:
        return jsonify({"success": False, "message": "image file is required"}), 400

    cfg = current_app.config
    decoder = build_decoder(cfg.get("SCANNER_DECODER", "pyzbar"), cfg.get("SCANNER_SEED"))
    try:
        code = decoder.decode_image(upload.read())
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    finally:
        decoder.close()

    if not code:
        return jsonify({"success": False, "message": "No barcode detected"}), 200
    return _detected(_scanner().submit_manual(code))
