"""One-way hashing of refresh credentials before they are persisted."""

from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash


@dataclass(frozen=True, slots=True)
class SecretHasher:
    """
    Salted one-way hash for bearer secrets.

    Refresh credentials are high-entropy signed strings, so a modest
    iteration count is enough; the store only ever sees the hash.

    :param method: Werkzeug method string (e.g. ``"pbkdf2:sha256:1000"``).
    :type method: str
    :param salt_length: Length of the random salt.
    :type salt_length: int
    """

    method: str = "pbkdf2:sha256:1000"
    salt_length: int = 16

    def hash(self, raw: str) -> str:
        """
        Hash a raw secret.

        :param raw: Plain secret (the signed refresh credential).
        :type raw: str
        :returns: Encoded ``method$salt$hash`` string.
        :rtype: str
        :raises ValueError: If ``raw`` is empty.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Secret must be a non-empty string.")
        return generate_password_hash(raw, method=self.method, salt_length=self.salt_length)

    def verify(self, secret_hash: str, raw: str) -> bool:
        """
        Compare ``raw`` against ``secret_hash`` in constant time.

        :param secret_hash: Stored hash.
        :type secret_hash: str
        :param raw: Presented secret.
        :type raw: str
        :returns: ``True`` on match; ``False`` otherwise (including malformed hashes).
        :rtype: bool
        """
        if not secret_hash or not raw:
            return False
        # ``check_password_hash`` is untyped; coerce to bool for mypy.
        return bool(check_password_hash(secret_hash, raw))
