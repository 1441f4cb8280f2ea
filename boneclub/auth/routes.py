"""Routes for the auth blueprint."""

from firebase_admin import auth
from flask import current_app, jsonify, request, session

from boneclub.core.constants import USERS
from boneclub.core.store import EntityStore
from boneclub.extensions import csrf
from boneclub.utils import jsonable

from . import bp
from .decorators import login_required
from .utils import current_user


@bp.route("/session_login", methods=["POST"])
@csrf.exempt
def session_login():
    """
    This endpoint is called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    id_token = (request.get_json(silent=True) or {}).get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing ID token."}), 400
    try:
        decoded_token = auth.verify_id_token(id_token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, ValueError) as e:
        current_app.logger.warning(f"Rejected session login: {e}")
        return jsonify({"status": "error", "message": "Invalid token."}), 401

    uid = decoded_token["uid"]
    user = EntityStore().find(USERS, uid)
    if user is None:
        return (
            jsonify({"status": "error", "message": "User not found in Firestore."}),
            404,
        )
    session["user_id"] = uid
    session["is_admin"] = user.get("isAdmin", False)
    current_app.logger.info(f"User {uid} logged in.")
    return jsonify({"status": "success"})


@bp.route("/logout", methods=["POST"])
def logout():
    """Clear the server-side session; Firebase handles client-side sign-out."""
    session.clear()
    return jsonify({"status": "success"})


@bp.route("/me")
@login_required
def me():
    """Return the logged-in user."""
    user = current_user()
    return jsonify(
        jsonable(
            {
                "uid": user.uid,
                "username": user.username,
                "is_admin": user.is_admin,
                "email": user.email,
            }
        )
    )
