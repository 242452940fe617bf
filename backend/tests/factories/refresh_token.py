"""Factory Boy definition for :class:`refresh_engine.models.refresh_token.RefreshToken`."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory
from refresh_engine.models.refresh_token import RefreshToken
from tests.factories import BaseFactory


class RefreshTokenFactory(BaseFactory):
    """
    Build persisted :class:`RefreshToken` rows.

    Notes
    -----
    - ``secret_hash`` is a placeholder; tests that verify secrets hash a real
      credential with :class:`~refresh_engine.core.security.SecretHasher`.
    - ``token_family`` defaults to one family per row; pass it explicitly to
      chain rows.
    """

    class Meta:
        model = RefreshToken

    jti = factory.Sequence(lambda n: f"jti-{n}")
    token_family = factory.Sequence(lambda n: f"fam-{n}")
    secret_hash = "pbkdf2:sha256:1$salt$placeholder"
    user_id = "1"
    is_used = False
    is_revoked = False
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    updated_at = factory.LazyAttribute(lambda o: o.created_at)
    expires_at = factory.LazyAttribute(lambda o: o.created_at + timedelta(days=7))
    ip_address = factory.Faker("ipv4")
    user_agent = factory.Faker("user_agent")
