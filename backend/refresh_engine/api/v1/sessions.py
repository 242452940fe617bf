"""Session endpoints: refresh-token rotation, logout and session listing."""

from __future__ import annotations

from flask import Blueprint, g, request

from refresh_engine.api.deps import (
    client_context,
    json_response,
    no_content,
    require_access_token,
    session_service,
    timing,
)
from refresh_engine.schemas import (
    LogoutSchema,
    RefreshSchema,
    SessionSchema,
    TokenPairSchema,
)
from refresh_engine.services.sessions import LogoutIn, RefreshIn

bp = Blueprint("sessions", __name__)

refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
token_pair_schema = TokenPairSchema()
sessions_schema = SessionSchema(many=True)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token and return a new credential pair."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    ip, user_agent = client_context()
    pair = session_service().refresh(
        RefreshIn(refresh_token=data["refresh_token"], ip=ip, user_agent=user_agent)
    )
    response = json_response({"data": token_pair_schema.dump(pair)})
    response.headers["Cache-Control"] = "no-store"
    return response


@bp.post("/logout")
@timing
def logout():
    """Revoke the session of a refresh token (or every session of its user)."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    session_service().logout(
        LogoutIn(refresh_token=data["refresh_token"], all_sessions=data["all_sessions"])
    )
    return no_content()


@bp.get("")
@require_access_token
@timing
def list_sessions():
    """List the caller's active sessions, newest first."""

    user_id = g.access_claims["sub"]
    service = session_service()
    items = service.list_sessions(user_id)
    return json_response({"data": sessions_schema.dump(items), "meta": {"total": len(items)}})
