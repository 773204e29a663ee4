from flask import Blueprint, current_app, jsonify, request, session

from library_portal.services.auth_service import AuthService, FormError
from library_portal.services.borrow_service import LoanLedger
from library_portal.utils.auth import current_user, login_required
from library_portal.utils.dates import to_iso

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/student/register", endpoint="student_register")
def student_register():
    data = request.get_json(silent=True) or {}
    try:
        profile = AuthService.register_student(data, current_app.config.get("SMS_COUNTRY_CODE", "+91"))
        return jsonify({"success": True, "user": profile}), 201
    except FormError as e:
        return jsonify({"success": False, "errors": e.errors}), 400


@auth_bp.post("/librarian/register", endpoint="librarian_register")
def librarian_register():
    data = request.get_json(silent=True) or {}
    try:
        profile = AuthService.register_librarian(data)
        return jsonify({"success": True, "user": profile}), 201
    except FormError as e:
        return jsonify({"success": False, "errors": e.errors}), 400


@auth_bp.post("/student/login", endpoint="student_login")
def student_login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"success": False, "errors": {"email": "Email is required", "password": "Password is required"}}), 400

    try:
        student = AuthService.login_student(email, password)
    except ValueError as e:
        return jsonify({"success": False, "errors": {"email": str(e)}}), 401

    session.clear()
    session["currentUser"] = {
        "email": student.email,
        "userType": "student",
        "isLoggedIn": True,
        "studentId": student.id,
        "name": student.name,
        "mobileNo": student.mobile_no,
        "loginTime": to_iso(student.login_time),
    }
    return jsonify({"success": True, "user": student.to_raw()})


@auth_bp.post("/librarian/login", endpoint="librarian_login")
def librarian_login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"success": False, "errors": {"email": "Email is required", "password": "Password is required"}}), 400

    try:
        librarian = AuthService.login_librarian(email, password)
    except ValueError as e:
        return jsonify({"success": False, "errors": {"email": str(e)}}), 401

    session.clear()
    session["currentUser"] = {"email": librarian["email"], "userType": "librarian", "isLoggedIn": True}
    return jsonify({"success": True, "user": librarian})


@auth_bp.post("/logout", endpoint="logout")
def logout():
    # ledger entry stays; only the session marker goes
    session.pop("currentUser", None)
    return jsonify({"success": True, "message": "Logged out"})


@auth_bp.get("/me", endpoint="me")
@login_required
def me():
    user = dict(current_user())
    if user.get("userType") == "student":
        student = LoanLedger.find_by_email(user["email"])
        if student:
            user["borrowedBooks"] = student.to_raw()["borrowedBooks"]
            user["overdueBooks"] = student.overdue_books
    return jsonify({"success": True, "user": user})
