import pytest

from app.core.errors import UnauthorizedError, ValidationError
from app.core.security import TokenManager, hash_password, password_fingerprint, verify_password


@pytest.fixture
def tokens() -> TokenManager:
    return TokenManager("access-secret-for-tests", "refresh-secret-for-tests")


def test_issue_and_verify_round_trip(tokens) -> None:
    pair = tokens.issue("user-1")

    assert tokens.verify_access(pair.access_token) == "user-1"
    assert tokens.verify_refresh(pair.refresh_token) == "user-1"


def test_tokens_are_not_interchangeable(tokens) -> None:
    pair = tokens.issue("user-1")

    with pytest.raises(UnauthorizedError) as exc_info:
        tokens.verify_refresh(pair.access_token)
    assert exc_info.value.code == "AUTH_INVALID_TOKEN"


def test_expired_token(tokens) -> None:
    pair = tokens.issue("user-1")

    with pytest.raises(UnauthorizedError) as exc_info:
        tokens.verify_access(pair.access_token, max_age=-1)
    assert exc_info.value.code == "AUTH_TOKEN_EXPIRED"


def test_missing_and_tampered_tokens(tokens) -> None:
    with pytest.raises(UnauthorizedError) as exc_info:
        tokens.verify_access(None)
    assert exc_info.value.code == "AUTH_TOKEN_MISSING"

    pair = tokens.issue("user-1")
    with pytest.raises(UnauthorizedError):
        tokens.verify_access("x" + pair.access_token[1:])


def test_password_hashing() -> None:
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("battery staple", hashed)
    assert not verify_password("correct horse", "not-a-hash")


def test_reset_token_carries_password_fingerprint(tokens) -> None:
    hashed = hash_password("correct horse")
    token = tokens.issue_reset("user-1", hashed)

    assert tokens.verify_reset(token) == ("user-1", password_fingerprint(hashed))
    assert password_fingerprint(hash_password("battery staple")) != password_fingerprint(hashed)


def test_reset_token_rejects_expired_and_foreign_tokens(tokens) -> None:
    token = tokens.issue_reset("user-1", hash_password("correct horse"))
    pair = tokens.issue("user-1")

    for bad, max_age in ((token, -1), (pair.access_token, None), (None, None), ("x" + token[1:], None)):
        with pytest.raises(ValidationError) as exc_info:
            tokens.verify_reset(bad, max_age=max_age)
        assert exc_info.value.code == "INVALID_RESET_TOKEN"
