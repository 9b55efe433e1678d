"""
Credential management: password hashing and session tokens.

Tokens are compact JSON Web Tokens signed with HMAC-SHA256 and
base64url encoded.  The payload carries only the principal ``id`` plus
the ``iat``/``exp`` timestamps; lifetime is fixed at issuance and expiry
is enforced purely by verification, there is no server-side token
store.  Passwords are hashed with PBKDF2-HMAC-SHA256 and a random
per-password salt.  The stored digest records the algorithm and
iteration count so verification never depends on the current setting.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from .config import Settings


logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16
TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def hash_password(password: str, iterations: int) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Returns a string of the form
    ``pbkdf2_sha256$<iterations>$<salthex>$<hashhex>``.
    """
    salt = os.urandom(SALT_BYTES)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored digest.

    Never raises: a malformed digest, a missing value or any other
    failure yields ``False``.
    """
    try:
        algorithm, iterations, salt_hex, hash_hex = hashed_password.split("$")
        if algorithm != HASH_ALGORITHM:
            return False
        dk = hashlib.pbkdf2_hmac(
            "sha256",
            plain_password.encode("utf-8"),
            bytes.fromhex(salt_hex),
            int(iterations),
        )
        return hmac.compare_digest(dk, bytes.fromhex(hash_hex))
    except Exception:
        logger.warning("Unable to compare password against stored digest")
        return False


def create_access_token(data: Dict[str, Any], secret: str, lifetime: int) -> str:
    """Create a signed token embedding ``data`` with ``iat`` and ``exp``.

    The token is a string of the form ``header.payload.signature``,
    where each part is base64url encoded.  Clients send it back in the
    ``Authorization`` header as ``Bearer <token>``.
    """
    issued_at = int(time.time())
    to_encode = dict(data)
    to_encode["iat"] = issued_at
    to_encode["exp"] = issued_at + lifetime
    header_b64 = _b64_url_encode(json.dumps(TOKEN_HEADER, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, secret))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a token.

    Checks the shape, the HMAC signature (constant-time) and the ``exp``
    claim.  Returns the payload if valid, otherwise ``None``.
    """
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header_b64, payload_b64, signature_b64 = parts
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, secret)
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        if not isinstance(data, dict):
            return None
        if data.get("exp") is None or int(data["exp"]) <= int(time.time()):
            return None
        return data
    except (ValueError, TypeError, UnicodeDecodeError):
        return None


class CredentialManager:
    """Hashes and verifies passwords, issues and verifies session tokens.

    Holds the signing secret, token lifetime and hashing cost taken from
    ``Settings``.  Hashing and verification are CPU-bound and are pushed
    to the threadpool by the ``*_async`` helpers so request handling never
    blocks the event loop.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.secret_key
        self.token_lifetime = settings.token_lifetime
        self.iterations = settings.password_hash_iterations
        self._dummy_digest: Optional[str] = None

    def hash_password(self, password: str) -> str:
        return hash_password(password, self.iterations)

    def verify_password(self, password: str, digest: Optional[str]) -> bool:
        if not password or not digest:
            return False
        return verify_password(password, digest)

    async def hash_password_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash_password, password)

    async def verify_password_async(self, password: str, digest: Optional[str]) -> bool:
        return await run_in_threadpool(self.verify_password, password, digest)

    @property
    def dummy_digest(self) -> str:
        """A digest no password matches, for checks against unknown principals.

        Verifying against it costs as much as verifying a real password.
        """
        if self._dummy_digest is None:
            self._dummy_digest = hash_password(os.urandom(SALT_BYTES).hex(), self.iterations)
        return self._dummy_digest

    def issue_token(self, principal_id: int) -> Dict[str, Any]:
        """Sign ``{"id": principal_id}`` and report the lifetime."""
        token = create_access_token({"id": principal_id}, self._secret, self.token_lifetime)
        return {"token": token, "expiresIn": self.token_lifetime}

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        return decode_access_token(token, self._secret)
