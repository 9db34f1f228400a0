# portal/api/routes/auth_routes.py
from flask import Blueprint, jsonify
from flask_login import current_user

api_auth = Blueprint("api_auth", __name__, url_prefix="/api/auth")


@api_auth.get("/check-session")
def check_session():
    """Základní info o session z bearer tokenu (bez citlivých údajů)."""
    if not current_user.is_authenticated:
        return jsonify({"hasSession": False, "userId": None, "userEmail": None, "isAdmin": False})
    return jsonify({
        "hasSession": True,
        "userId": current_user.id,
        "userEmail": current_user.email,
        "isAdmin": bool(current_user.is_admin),
    })
