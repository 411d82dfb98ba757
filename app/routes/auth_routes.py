from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session

from app.application.auth_service import AuthService
from app.application.guards import current_user
from app.db import get_db
from app.domain.contracts import AuthLoginInput, AuthRegisterInput, AuthUser
from app.errors import PermissionError as AppPermissionError
from app.errors import ValidationError
from app.routes.payloads import request_payload
from app.security import csrf_token
from app.ui_strings import success_message


auth_bp = Blueprint("auth", __name__)
_auth_service = AuthService()

_PUBLIC_PATHS = {"/api/auth/login", "/api/auth/register", "/health", "/metrics"}


def register_auth(app) -> None:
    app.register_blueprint(auth_bp)

    @app.before_request
    def _require_login():
        if not app.config.get("AUTH_ENABLED", True):
            return None

        path = request.path or "/"
        if path in _PUBLIC_PATHS:
            return None
        if not path.startswith("/api/"):
            return None
        if session.get("user_id"):
            return None

        raise AppPermissionError(
            code="auth_required",
            message_key="auth_required",
            http_status=401,
            critical=False,
        )


def _start_session(user: AuthUser) -> None:
    session.clear()
    session["user_id"] = user.user_id
    session["user_email"] = user.email
    session["display_name"] = user.display_name
    session["user_role"] = user.role
    session["company_id"] = user.company_id
    session["carrier_id"] = user.carrier_id


def _user_payload(user: AuthUser) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role or None,
        "company_id": user.company_id,
        "carrier_id": user.carrier_id,
    }


@auth_bp.route("/api/auth/login", methods=["POST"])
def login():
    payload = request_payload()
    email = (str(payload.get("email") or "")).strip().lower()
    password = str(payload.get("password") or "")
    if not email or not password:
        raise ValidationError(code="credentials_required", http_status=400, critical=False)

    db = get_db()
    user = _auth_service.login(
        db,
        AuthLoginInput(email=email, password=password),
        current_app.config.get("APP_USERS"),
    )
    if not user:
        raise AppPermissionError(
            code="invalid_credentials",
            message_key="invalid_credentials",
            http_status=401,
            critical=False,
        )
    db.commit()
    _start_session(user)
    return jsonify({"user": _user_payload(user), "csrf_token": csrf_token()}), 200


@auth_bp.route("/api/auth/register", methods=["POST"])
def register():
    payload = request_payload()
    db = get_db()
    user = _auth_service.register(
        db,
        AuthRegisterInput(
            email=str(payload.get("email") or ""),
            password=str(payload.get("password") or ""),
            full_name=payload.get("full_name"),
            role=str(payload.get("role") or "CLIENTE"),
            company_name=payload.get("company_name"),
            carrier_name=payload.get("carrier_name"),
        ),
    )
    db.commit()
    _start_session(user)
    return jsonify({"user": _user_payload(user), "csrf_token": csrf_token()}), 201


@auth_bp.route("/api/auth/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"message": success_message("logged_out")}), 200


@auth_bp.route("/api/auth/me", methods=["GET"])
def me():
    user = current_user()
    profile = _auth_service.profile_payload(get_db(), user.user_id)
    if not profile:
        session.clear()
        raise AppPermissionError(
            code="auth_required",
            message_key="auth_required",
            http_status=401,
            critical=False,
        )
    return jsonify({"profile": profile, "csrf_token": csrf_token()}), 200
