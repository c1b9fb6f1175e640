"""
NoteTree Backend: Credential Service
======================================

What:  Password hashing/verification and session token issuance/verification.
How:   passlib's CryptContext (bcrypt, random salt per hash) for passwords,
       python-jose for HS256-signed JWTs.
Who:   UserService (registration, profile update, login) and the
       authorization guard (token verification).

Token payload:
    {
        "sub": "42",          # user id as a string (JWT convention)
        "id": 42,
        "username": "alice",
        "iat": 1700000000,
        "exp": 1700086400     # iat + 24h
    }

Verification is pure computation (signature check + clock comparison),
no I/O. The signing key is read from settings once, when the singleton
below is created.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from notetree.config import settings
from notetree.exceptions import ExpiredTokenError, InvalidTokenError
from notetree.schemas.auth import TokenIdentity

logger = logging.getLogger(__name__)


class CredentialService:
    """
    Hashes passwords and signs/verifies session tokens.

    Stateless apart from its configuration, so one instance is shared by
    every request.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=24),
        bcrypt_rounds: int = 12,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.token_ttl = token_ttl
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        """Returns a salted bcrypt hash. Two calls never return the same string."""
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """
        Checks a password against a stored hash in constant time.

        Returns False on mismatch and also when the stored value is not a
        recognizable hash; never raises for either case.
        """
        try:
            return self._pwd_context.verify(password, password_hash)
        except ValueError:
            logger.warning("Stored password hash has an unrecognized format")
            return False

    def dummy_verify(self) -> None:
        """Spends the time of one verification. Used when no account matched."""
        self._pwd_context.dummy_verify()

    # ── Session tokens ────────────────────────────────────────────────────

    def issue_token(
        self,
        user_id: int,
        username: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Creates a signed token identifying the user.

        Args:
            user_id: Account id embedded as `id` (and `sub`)
            username: Embedded as `username`
            expires_delta: Overrides the configured lifetime (tests only)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self.token_ttl)
        payload = {
            "sub": str(user_id),
            "id": user_id,
            "username": username,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> TokenIdentity:
        """
        Decodes a token and returns the identity it carries.

        Raises:
            ExpiredTokenError: Signature is valid but `exp` has passed
            InvalidTokenError: Bad signature, malformed token, or a payload
                               without an integer `id` and string `username`
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        user_id = payload.get("id")
        username = payload.get("username")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise InvalidTokenError("Token payload has no user id")
        if not isinstance(username, str) or not username:
            raise InvalidTokenError("Token payload has no username")

        return TokenIdentity(user_id=user_id, username=username)


# ── Singleton Instance ────────────────────────────────────────────────────
credential_service = CredentialService(
    secret=settings.jwt_secret,
    algorithm=settings.jwt_algorithm,
    token_ttl=timedelta(hours=settings.token_ttl_hours),
    bcrypt_rounds=settings.bcrypt_rounds,
)
