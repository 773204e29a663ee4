from functools import wraps
from flask import session, jsonify


def current_user():
    return session.get("currentUser")


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        if not user or not user.get("isLoggedIn"):
            return jsonify({"success": False, "message": "Unauthorized"}), 401
        return view(*args, **kwargs)
    return wrapped


def role_required(user_type):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = current_user()
            if not user or not user.get("isLoggedIn"):
                return jsonify({"success": False, "message": "Unauthorized"}), 401
            if user.get("userType") != user_type:
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator


student_required = role_required("student")
librarian_required = role_required("librarian")
