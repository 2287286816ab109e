"""
Tests for public-link routing: parsing, lookup outcomes and the race rule
that only the latest lookup may land.
"""

import asyncio

import pytest

from recall.fsm.effects import EffectKind
from recall.fsm.hash_route import (
    NOT_FOUND_MESSAGE, HashOutcome, HashRouter, OutcomeKind, apply_hash_outcome,
    parse_public_hash,
)
from recall.state.view import MemorizationSnapshot, PublicPracticeView, SavedView, initial_state

SNAPSHOT = MemorizationSnapshot(original_text="Twinkle twinkle", title="Star")


def static_resolver(known):
    async def resolve(public_id):
        return known.get(public_id)
    return resolve


class TestParse:
    def test_public_link(self):
        assert parse_public_hash("#/public/abc-123") == "abc-123"

    @pytest.mark.parametrize("value", [None, "", "#", "#/public/", "#/saved", "/public/abc"])
    def test_not_a_public_link(self, value):
        assert parse_public_hash(value) is None


class TestResolve:
    async def test_found(self):
        router = HashRouter(static_resolver({"abc": SNAPSHOT}))
        outcome = await router.resolve("#/public/abc")
        assert outcome.kind == OutcomeKind.RESOLVED
        assert outcome.snapshot == SNAPSHOT

    async def test_missing(self):
        router = HashRouter(static_resolver({}))
        outcome = await router.resolve("#/public/nope")
        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.public_id == "nope"

    async def test_not_a_route(self):
        router = HashRouter(static_resolver({}))
        assert (await router.resolve("#/other")).kind == OutcomeKind.NOT_A_ROUTE

    async def test_resolver_error_is_not_found(self):
        async def broken(public_id):
            raise RuntimeError("db down")

        outcome = await HashRouter(broken).resolve("#/public/x")
        assert outcome.kind == OutcomeKind.NOT_FOUND

    async def test_newer_hash_makes_older_lookup_stale(self):
        release = asyncio.Event()

        async def slow(public_id):
            if public_id == "slow":
                await release.wait()
            return SNAPSHOT

        router = HashRouter(slow)
        first = asyncio.create_task(router.resolve("#/public/slow"))
        await asyncio.sleep(0)
        second = await router.resolve("#/public/fast")
        release.set()

        assert second.kind == OutcomeKind.RESOLVED
        assert (await first).kind == OutcomeKind.STALE

    async def test_invalidate_makes_lookup_stale(self):
        release = asyncio.Event()

        async def slow(public_id):
            await release.wait()
            return SNAPSHOT

        router = HashRouter(slow)
        task = asyncio.create_task(router.resolve("#/public/abc"))
        await asyncio.sleep(0)
        router.invalidate()
        release.set()
        assert (await task).kind == OutcomeKind.STALE

    async def test_non_route_hash_supersedes_lookup(self):
        release = asyncio.Event()

        async def slow(public_id):
            await release.wait()
            return SNAPSHOT

        router = HashRouter(slow)
        task = asyncio.create_task(router.resolve("#/public/abc"))
        await asyncio.sleep(0)
        await router.resolve("")
        release.set()
        assert (await task).kind == OutcomeKind.STALE


class TestApplyOutcome:
    def test_resolved_enters_public_practice(self):
        result = apply_hash_outcome(SavedView(), HashOutcome(OutcomeKind.RESOLVED, "abc", SNAPSHOT))
        assert result.state == PublicPracticeView(memorization=SNAPSHOT)

    def test_not_found_resets_and_reports(self):
        result = apply_hash_outcome(SavedView(), HashOutcome(OutcomeKind.NOT_FOUND, "abc"))
        assert result.state == initial_state()
        assert [e.kind for e in result.effects] == [EffectKind.CLEAR_HASH, EffectKind.NOT_FOUND]
        assert result.effects[1].message == NOT_FOUND_MESSAGE

    @pytest.mark.parametrize("kind", [OutcomeKind.STALE, OutcomeKind.NOT_A_ROUTE])
    def test_other_outcomes_leave_state(self, kind):
        state = SavedView()
        result = apply_hash_outcome(state, HashOutcome(kind))
        assert result.state is state
        assert result.effects[0].kind == EffectKind.IGNORED
