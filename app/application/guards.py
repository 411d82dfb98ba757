from __future__ import annotations

from flask import session

from app.domain.contracts import UserContext
from app.errors import ConflictError, NotFoundError, ValidationError
from app.errors import PermissionError as AppPermissionError
from app.freight.flow_policy import action_allowed, allowed_actions, primary_action
from app.policies import CARRIER_ROLES, CLIENT_ROLES, normalize_role, require_roles


def current_user() -> UserContext:
    raw_user_id = session.get("user_id")
    try:
        user_id = int(raw_user_id)
    except (TypeError, ValueError):
        raise AppPermissionError(
            code="auth_required",
            message_key="auth_required",
            http_status=401,
            critical=False,
        ) from None

    raw_carrier_id = session.get("carrier_id")
    try:
        carrier_id = int(raw_carrier_id) if raw_carrier_id not in (None, "") else None
    except (TypeError, ValueError):
        carrier_id = None

    return UserContext(
        user_id=user_id,
        role=normalize_role(session.get("user_role")),
        company_id=(str(session.get("company_id") or "").strip() or None),
        carrier_id=carrier_id,
        email=session.get("user_email"),
    )


def require_client(user: UserContext) -> str:
    """Client-side access: returns the company the user acts for."""
    require_roles(*CLIENT_ROLES, role=user.role)
    if not user.company_id:
        raise ValidationError(
            code="company_required",
            message_key="company_required",
            http_status=400,
            critical=False,
        )
    return user.company_id


def require_carrier(user: UserContext) -> int:
    require_roles(*CARRIER_ROLES, role=user.role)
    if not user.carrier_id:
        raise ValidationError(
            code="carrier_required",
            message_key="carrier_required",
            http_status=400,
            critical=False,
        )
    return int(user.carrier_id)


def require_action(stage: str, status: str | None, action: str) -> None:
    if action_allowed(stage, status, action):
        return
    raise ConflictError(
        code="action_not_allowed_for_status",
        message_key="action_not_allowed_for_status",
        http_status=409,
        critical=False,
        payload={
            "stage": stage,
            "status": status,
            "action": action,
            "allowed_actions": allowed_actions(stage, status),
            "primary_action": primary_action(stage, status),
        },
    )


def not_found(code: str) -> NotFoundError:
    return NotFoundError(code=code, message_key=code, http_status=404, critical=False)
