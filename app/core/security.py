from dataclasses import dataclass
import hashlib

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.hash import pbkdf2_sha256

from app.core.config import settings
from app.core.errors import UnauthorizedError, ValidationError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
RESET_TOKEN_TYPE = "reset"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenManager:
    """Issue and verify signed access/refresh tokens."""

    def __init__(self, access_secret: str, refresh_secret: str):
        self.access_serializer = URLSafeTimedSerializer(access_secret, salt="access-token")
        self.refresh_serializer = URLSafeTimedSerializer(refresh_secret, salt="refresh-token")
        self.reset_serializer = URLSafeTimedSerializer(access_secret, salt="password-reset")

    @property
    def access_max_age(self) -> int:
        return settings.ACCESS_TOKEN_EXPIRY_MINUTES * 60

    @property
    def refresh_max_age(self) -> int:
        return settings.REFRESH_TOKEN_EXPIRY_DAYS * 24 * 60 * 60

    @property
    def reset_max_age(self) -> int:
        return settings.PASSWORD_RESET_EXPIRY_MINUTES * 60

    def issue(self, user_id: str) -> TokenPair:
        """Generate a fresh token pair for the given user id."""
        return TokenPair(
            access_token=self.access_serializer.dumps(
                {"userId": user_id, "tokenType": ACCESS_TOKEN_TYPE}
            ),
            refresh_token=self.refresh_serializer.dumps(
                {"userId": user_id, "tokenType": REFRESH_TOKEN_TYPE}
            ),
        )

    def issue_reset(self, user_id: str, password_hash: str) -> str:
        """Sign a password reset token bound to the user's current password hash.

        Once the password changes the fingerprint no longer matches, so a
        reset link works at most once.
        """
        return self.reset_serializer.dumps(
            {
                "userId": user_id,
                "tokenType": RESET_TOKEN_TYPE,
                "pwd": password_fingerprint(password_hash),
            }
        )

    def verify_access(self, token: str | None, max_age: int | None = None) -> str:
        """Return the user id carried by a valid access token."""
        if max_age is None:
            max_age = self.access_max_age
        return self._verify(self.access_serializer, token, ACCESS_TOKEN_TYPE, max_age)

    def verify_refresh(self, token: str | None, max_age: int | None = None) -> str:
        """Return the user id carried by a valid refresh token."""
        if max_age is None:
            max_age = self.refresh_max_age
        return self._verify(self.refresh_serializer, token, REFRESH_TOKEN_TYPE, max_age)

    def verify_reset(self, token: str | None, max_age: int | None = None) -> tuple[str, str]:
        """Return ``(user_id, password_fingerprint)`` from a valid reset token."""
        if max_age is None:
            max_age = self.reset_max_age
        invalid = ValidationError("Invalid or expired reset token", code="INVALID_RESET_TOKEN")
        if not token:
            raise invalid
        try:
            data = self.reset_serializer.loads(token, max_age=max_age)
        except BadSignature:
            # SignatureExpired is a BadSignature as well.
            raise invalid from None

        if (
            not isinstance(data, dict)
            or data.get("tokenType") != RESET_TOKEN_TYPE
            or not data.get("userId")
            or not data.get("pwd")
        ):
            raise invalid
        return str(data["userId"]), str(data["pwd"])

    @staticmethod
    def _verify(
        serializer: URLSafeTimedSerializer,
        token: str | None,
        token_type: str,
        max_age: int,
    ) -> str:
        if not token:
            raise UnauthorizedError(f"{token_type.capitalize()} token missing", code="AUTH_TOKEN_MISSING")
        try:
            data = serializer.loads(token, max_age=max_age)
        except SignatureExpired:
            raise UnauthorizedError(
                f"{token_type.capitalize()} token expired", code="AUTH_TOKEN_EXPIRED"
            ) from None
        except BadSignature:
            raise UnauthorizedError(
                f"Invalid {token_type} token", code="AUTH_INVALID_TOKEN"
            ) from None

        if not isinstance(data, dict) or data.get("tokenType") != token_type or not data.get("userId"):
            raise UnauthorizedError(f"Invalid {token_type} token", code="AUTH_INVALID_TOKEN")
        return str(data["userId"])


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pbkdf2_sha256.verify(password, password_hash)
    except ValueError:
        # Malformed stored hash.
        return False


def password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


token_manager = TokenManager(settings.SECRET_KEY, settings.refresh_secret)
