from flask import Blueprint, jsonify, request

from library_portal.services.borrow_service import LoanLedger
from library_portal.services.due_dates import classify
from library_portal.utils.auth import current_user, librarian_required, login_required, student_required
from library_portal.utils.dates import to_iso, utcnow

borrow_bp = Blueprint("borrow", __name__)


def _loan_rows(student):
    now = utcnow()
    rows = []
    for loan in student.borrowed_books:
        borrow_date = loan.effective_borrow_date(student.login_time)
        status = classify(getattr(loan, "borrow_date", None), now)
        rows.append({
            "title": loan.title,
            "borrow_date": to_iso(borrow_date) if borrow_date else None,
            "due_date": to_iso(loan.due_date) if getattr(loan, "due_date", None) else None,
            "status": status.status,
            "message": status.message,
        })
    return rows


@borrow_bp.post("/")
@librarian_required
def borrow_for_student():
    data = request.get_json(silent=True) or {}
    try:
        student_id = int(data["student_id"])
        book_id = int(data["book_id"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"success": False, "message": "student_id and book_id are required"}), 400

    try:
        record = LoanLedger.borrow(student_id, book_id)
        return jsonify({"success": True, "data": record.to_raw()}), 201
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400


@borrow_bp.post("/me")
@student_required
def borrow_for_me():
    data = request.get_json(silent=True) or {}
    try:
        book_id = int(data["book_id"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"success": False, "message": "book_id is required"}), 400

    student = LoanLedger.find_by_email(current_user()["email"])
    if not student:
        return jsonify({"success": False, "message": "Student session not found"}), 404

    try:
        record = LoanLedger.borrow(student.id, book_id)
        return jsonify({"success": True, "data": record.to_raw()}), 201
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400


@borrow_bp.post("/return")
@login_required
def return_book():
    data = request.get_json(silent=True) or {}
    title = (data.get("title") or "").strip()
    if not title:
        return jsonify({"success": False, "message": "title is required"}), 400

    user = current_user()
    if user.get("userType") == "librarian":
        try:
            student_id = int(data["student_id"])
        except (KeyError, TypeError, ValueError):
            return jsonify({"success": False, "message": "student_id is required"}), 400
    else:
        student = LoanLedger.find_by_email(user["email"])
        if not student:
            return jsonify({"success": False, "message": "Student session not found"}), 404
        student_id = student.id

    try:
        student = LoanLedger.return_book(student_id, title)
        return jsonify({"success": True, "data": {"overdueBooks": student.overdue_books, "borrowedBooks": student.titles()}})
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400


@borrow_bp.get("/my")
@student_required
def my_borrows():
    student = LoanLedger.find_by_email(current_user()["email"])
    if not student:
        return jsonify({"success": True, "data": []})
    return jsonify({"success": True, "data": _loan_rows(student)})


@borrow_bp.get("/students")
@librarian_required
def active_students():
    q = (request.args.get("q") or "").strip().lower()
    students = LoanLedger.active_students()
    if q:
        students = [s for s in students if q in s.name.lower() or q in s.roll_no.lower() or q in s.email.lower()]
    return jsonify({"success": True, "data": [s.to_raw() for s in students]})


@borrow_bp.get("/overdue")
@librarian_required
def overdue_report():
    return jsonify({"success": True, "data": LoanLedger.overdue_report()})
