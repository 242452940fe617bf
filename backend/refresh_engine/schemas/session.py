"""Session-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=4096))


class LogoutSchema(Schema):
    """Input payload for ending one session or all of them."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=4096))
    all_sessions = fields.Boolean(load_default=False)


class TokenPairSchema(Schema):
    """Response payload containing a fresh credential pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    token_type = fields.String(load_default="Bearer")


class SessionSchema(Schema):
    """Response payload describing one active session."""

    token_family = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    expires_at = fields.DateTime(required=True)
    ip_address = fields.String(allow_none=True)
    user_agent = fields.String(allow_none=True)
