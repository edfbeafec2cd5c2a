"""Authentication challenge handling for the identify handshake."""

from __future__ import annotations

import base64
import hashlib
from typing import Any

from pydantic import BaseModel, ValidationError


class AuthChallenge(BaseModel):
    """The ``authentication`` object of a hello message.

    Valid for a single handshake only.
    """

    challenge: str
    salt: str

    @classmethod
    def from_hello(cls, body: dict[str, Any]) -> AuthChallenge | None:
        """Extract the challenge from a hello body, None if absent or malformed."""
        auth = body.get("authentication")
        if not isinstance(auth, dict):
            return None
        try:
            return cls.model_validate(auth)
        except ValidationError:
            return None


def hash_encode(value: str) -> str:
    """Base64 of the SHA-256 digest of the UTF-8 bytes of ``value``."""
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def compute_authentication(password: str, challenge: AuthChallenge) -> str:
    """Derive the identify ``authentication`` string.

    secret = hash(password + salt), response = hash(secret + challenge).
    Both concatenations are plain string joins with no separator.
    """
    secret = hash_encode(password + challenge.salt)
    return hash_encode(secret + challenge.challenge)
