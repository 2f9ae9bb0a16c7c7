import asyncio

import resend

from app.core.logging_config import fingerprint_email
from app.core.rate_limit import KeyedLock, RateLimiter
from app.services.notifier import (
    TEMPLATE_LOGIN_NOTIFICATION,
    TEMPLATE_PASSWORD_CHANGED,
    TEMPLATE_PASSWORD_RESET,
    TEMPLATE_WELCOME,
    Notifier,
)


def test_notifier_skips_without_api_key(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: calls.append(params))

    assert Notifier(api_key="").send("ada@example.com", TEMPLATE_WELCOME, {"name": "Ada"}) is False
    assert calls == []


def test_notifier_renders_and_sends(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: calls.append(params) or {"id": "1"})

    sent = Notifier(api_key="re_test").send(
        "ada@example.com",
        TEMPLATE_LOGIN_NOTIFICATION,
        {"name": "<Ada>", "ip": "10.0.0.1", "device": "curl"},
    )

    assert sent is True
    assert calls[0]["to"] == "ada@example.com"
    assert "&lt;Ada&gt;" in calls[0]["html"]
    assert "10.0.0.1" in calls[0]["html"]


def test_notifier_password_templates(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: calls.append(params) or {"id": "1"})
    notifier = Notifier(api_key="re_test")

    link = "http://localhost:3000/reset-password?token=abc&x=1"
    assert notifier.send("ada@example.com", TEMPLATE_PASSWORD_RESET, {"name": "Ada", "link": link})
    assert notifier.send("ada@example.com", TEMPLATE_PASSWORD_CHANGED, {"name": "Ada"})

    assert 'href="http://localhost:3000/reset-password?token=abc&amp;x=1"' in calls[0]["html"]
    assert "60 minutes" in calls[0]["html"]
    assert "password was changed" in calls[1]["subject"]


def test_notifier_swallows_provider_errors(monkeypatch) -> None:
    def boom(params):
        raise RuntimeError("provider down")

    monkeypatch.setattr(resend.Emails, "send", boom)

    assert Notifier(api_key="re_test").send("ada@example.com", TEMPLATE_WELCOME) is False
    assert Notifier(api_key="re_test").send("ada@example.com", "unknown-template") is False


def test_fingerprint_email() -> None:
    assert fingerprint_email("Ada@Example.com ") == fingerprint_email("ada@example.com")
    assert len(fingerprint_email("ada@example.com")) == 12
    assert fingerprint_email(None) == "unknown"


async def test_rate_limiter_window() -> None:
    limiter = RateLimiter()

    results = [await limiter.is_allowed("k", 2, 60) for _ in range(3)]
    assert results == [True, True, False]
    assert await limiter.is_allowed("other", 2, 60) is True

    limiter.reset()
    assert await limiter.is_allowed("k", 2, 60) is True


async def test_keyed_lock_serializes_same_key() -> None:
    locks = KeyedLock()
    events = []

    async def worker(name: str, key: str) -> None:
        async with locks.hold(key):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(worker("a", "user-1"), worker("b", "user-1"))

    assert events in (
        ["a:start", "a:end", "b:start", "b:end"],
        ["b:start", "b:end", "a:start", "a:end"],
    )
    assert locks._locks == {}
