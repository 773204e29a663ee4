# library_portal/controllers/book_controller.py

from flask import Blueprint, jsonify, request

from library_portal.services.book_service import BookService
from library_portal.services.recommendation_service import get_recommendations
from library_portal.utils.auth import current_user, student_required

book_bp = Blueprint("books", __name__)


@book_bp.get("/")
def list_books():
    q = request.args.get("q", "")
    views = BookService.search(q) if q.strip() else BookService.list_books()
    return jsonify({"success": True, "data": [v.to_dict() for v in views]})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    try:
        return jsonify({"success": True, "data": BookService.get_book(book_id).to_dict()})
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 404


@book_bp.get("/barcode/<code>")
def lookup_barcode(code: str):
    try:
        return jsonify({"success": True, "data": BookService.lookup_barcode(code).to_dict()})
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 404


@book_bp.get("/recommendations")
@student_required
def recommendations():
    recs = get_recommendations(current_user()["email"], BookService.list_books())
    return jsonify({"success": True, "data": [r.to_dict() for r in recs]})
