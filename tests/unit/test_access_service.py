# tests/unit/test_access_service.py
# Admission rules of the access service against the in-memory store

import asyncio
from datetime import timedelta

import pytest

from burnlink.middleware.error_handler import StorageError
from burnlink.models.message import ViewOutcome
from burnlink.services.access_service import fingerprint_of, resolve_delay

from fakes import T0

READER = "203.0.113.7"
OTHER = "198.51.100.20"


class TestFingerprint:

    def test_fingerprint_is_deterministic(self):
        assert fingerprint_of(READER, "tok") == fingerprint_of(READER, "tok")

    def test_fingerprint_differs_per_token(self):
        assert fingerprint_of(READER, "tok-a") != fingerprint_of(READER, "tok-b")

    def test_fingerprint_differs_per_reader(self):
        assert fingerprint_of(READER, "tok") != fingerprint_of(OTHER, "tok")

    def test_fingerprint_does_not_contain_address(self):
        fp = fingerprint_of(READER, "tok")
        assert READER not in fp
        assert len(fp) == 64

    @pytest.mark.parametrize("identity", [None, "", "   "])
    def test_missing_identity_falls_back(self, identity):
        assert fingerprint_of(identity, "tok") == fingerprint_of("unknown", "tok")


class TestResolveDelay:

    @pytest.mark.parametrize("selector,expected", [
        ("15", 15), ("30", 30), ("60", 60), ("120", 120), ("1440", 1440), (60, 60),
    ])
    def test_known_selectors(self, selector, expected):
        assert resolve_delay(selector) == expected

    @pytest.mark.parametrize("selector", [None, "", "45", "abc", 7])
    def test_unknown_selector_uses_default(self, selector):
        assert resolve_delay(selector, default=15) == 15


@pytest.mark.asyncio
async def test_create_then_view_shows_text(access_service, fake_repo):
    token = await access_service.create("hello there", "60")

    result = await access_service.view(token, READER)

    assert result.outcome == ViewOutcome.SHOWN
    assert result.text == "hello there"
    assert result.first_view is True
    stored = fake_repo.rows[token]
    assert stored.active_until == stored.created_at + timedelta(minutes=60)
    assert result.active_until == stored.active_until
    assert result.expires_in_seconds == 3600
    assert result.time_remaining == "in an hour"


@pytest.mark.asyncio
async def test_create_keeps_blank_text(access_service, fake_repo):
    token = await access_service.create("   ", "15")

    assert fake_repo.rows[token].text == "   "
    assert (await access_service.view(token, READER)).text == "   "


@pytest.mark.asyncio
async def test_create_with_unknown_delay_uses_default(access_service, fake_repo):
    token = await access_service.create("x", "999")
    assert fake_repo.rows[token].ttl_value == 15
    assert fake_repo.rows[token].ttl_unit == "minutes"


@pytest.mark.asyncio
async def test_second_reader_is_denied(access_service):
    token = await access_service.create("secret", "60")
    await access_service.view(token, READER)

    result = await access_service.view(token, OTHER)

    assert result.outcome == ViewOutcome.DENIED
    assert result.text is None


@pytest.mark.asyncio
async def test_repeat_views_are_identical(access_service, clock):
    token = await access_service.create("again", "30")
    first = await access_service.view(token, READER)

    clock.advance(minutes=5)
    second = await access_service.view(token, READER)
    third = await access_service.view(token, READER)

    assert second.first_view is False
    assert (second.text, second.active_until) == (first.text, first.active_until)
    assert (third.text, third.active_until) == (first.text, first.active_until)


@pytest.mark.asyncio
async def test_view_at_exact_expiry_is_expired(access_service, clock):
    token = await access_service.create("tick", "15")
    await access_service.view(token, READER)

    clock.now = T0 + timedelta(minutes=15)
    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED

    clock.advance(seconds=1)
    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_unknown_token_is_expired(access_service):
    result = await access_service.view("nope", READER)
    assert result.outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_first_view_after_window_is_expired(access_service, clock):
    token = await access_service.create("late", "15")
    clock.advance(minutes=20)

    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_retention_ceiling_expires_unread_message(access_service, fake_repo, clock):
    token = await fake_repo.create("old", "minutes", 10_000_000, now=T0)
    clock.advance(days=31)

    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_delete_outcomes(access_service, fake_repo):
    assert await access_service.delete("missing", READER) is False

    token = await access_service.create("bye", "60")
    # unbound messages cannot be destroyed
    assert await access_service.delete(token, READER) is False

    await access_service.view(token, READER)
    assert await access_service.delete(token, OTHER) is False
    assert token in fake_repo.rows

    assert await access_service.delete(token, READER) is True
    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_purge_removes_only_expired(access_service, fake_repo, clock):
    expired = await access_service.create("a", "15")
    live = await access_service.create("b", "120")
    unread = await access_service.create("c", "15")
    await access_service.view(expired, READER)
    await access_service.view(live, READER)

    clock.advance(minutes=16)
    assert await access_service.purge() == 1
    assert set(fake_repo.rows) == {live, unread}
    assert await access_service.purge() == 0


@pytest.mark.asyncio
async def test_concurrent_first_views_bind_once(access_service, fake_repo):
    token = await access_service.create("race", "60")
    readers = [f"10.0.0.{i}" for i in range(10)]

    results = await asyncio.gather(*(access_service.view(token, r) for r in readers))

    winners = [r for r in results if r.first_view]
    assert len(winners) == 1
    assert sum(1 for r in results if r.outcome == ViewOutcome.DENIED) == 9
    bound = fake_repo.rows[token]
    winner_reader = readers[results.index(winners[0])]
    assert bound.bound_fingerprint == fingerprint_of(winner_reader, token)


@pytest.mark.asyncio
async def test_sixty_minute_scenario(access_service, fake_repo, clock):
    token = await access_service.create("scenario", "60")

    shown = await access_service.view(token, READER)
    assert shown.outcome == ViewOutcome.SHOWN
    assert shown.active_until == T0 + timedelta(minutes=60)

    clock.advance(minutes=1)
    assert (await access_service.view(token, OTHER)).outcome == ViewOutcome.DENIED

    clock.now = T0 + timedelta(minutes=59)
    again = await access_service.view(token, READER)
    assert again.outcome == ViewOutcome.SHOWN
    assert again.active_until == shown.active_until

    clock.now = T0 + timedelta(minutes=61)
    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED

    assert await access_service.purge() >= 1
    assert (await access_service.view(token, READER)).outcome == ViewOutcome.EXPIRED


@pytest.mark.asyncio
async def test_storage_errors_propagate(access_service, fake_repo):
    fake_repo.fail_with = StorageError()
    with pytest.raises(StorageError):
        await access_service.view("any", READER)
