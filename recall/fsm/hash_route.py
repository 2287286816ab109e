"""
Recall — Public Link Routing

The URL hash ``#/public/<contentId>`` is the only bookmarkable state. It
arrives asynchronously (browser navigation), needs a data-layer lookup, and
can race with clicks made while the lookup is in flight.

Race rule: every resolve takes a fresh token. Only the holder of the latest
token may apply its result; ``invalidate()`` (called whenever a synchronous
transition changes state) makes every in-flight lookup stale. The fetch
itself is not cancelled, its result is just discarded.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from recall.fsm.effects import CLEAR_HASH, Effect, EffectKind, TransitionResult, ignored, moved
from recall.state.view import MemorizationSnapshot, PublicPracticeView, ViewState, initial_state

logger = logging.getLogger("recall.fsm.hash_route")

PUBLIC_HASH_RE = re.compile(r"^#/public/(.+)$")

NOT_FOUND_MESSAGE = "The requested practice content was not found or is no longer available."

# resolver(public_id) -> snapshot, or None when the content does not exist
PublicContentResolver = Callable[[str], Awaitable[Optional[MemorizationSnapshot]]]


def parse_public_hash(hash_value: Optional[str]) -> Optional[str]:
    """Return the content id from ``#/public/<id>``, else None."""
    if not hash_value:
        return None
    match = PUBLIC_HASH_RE.match(hash_value)
    return match.group(1) if match else None


class OutcomeKind(str, Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    STALE = "stale"              # a newer hash or navigation took over
    NOT_A_ROUTE = "not_a_route"  # hash is empty or some other fragment


@dataclass(frozen=True)
class HashOutcome:
    kind: OutcomeKind
    public_id: Optional[str] = None
    snapshot: Optional[MemorizationSnapshot] = None


class HashRouter:
    """Resolves public links and tracks which lookup is still wanted."""

    def __init__(self, resolver: PublicContentResolver):
        self._resolver = resolver
        self._token = 0

    @property
    def token(self) -> int:
        return self._token

    def invalidate(self) -> None:
        """Discard interest in any lookup started before now."""
        self._token += 1

    async def resolve(self, hash_value: Optional[str]) -> HashOutcome:
        # Any hash change, public link or not, supersedes earlier lookups
        self._token += 1
        token = self._token

        public_id = parse_public_hash(hash_value)
        if public_id is None:
            return HashOutcome(OutcomeKind.NOT_A_ROUTE)

        try:
            snapshot = await self._resolver(public_id)
        except Exception as e:
            # Lookup failures degrade to "not found", same as a missing row
            logger.error(f"Public content lookup failed for {public_id}: {e}")
            snapshot = None

        if token != self._token:
            logger.debug(f"Discarding stale public lookup for {public_id}")
            return HashOutcome(OutcomeKind.STALE, public_id=public_id)

        if snapshot is None:
            return HashOutcome(OutcomeKind.NOT_FOUND, public_id=public_id)
        return HashOutcome(OutcomeKind.RESOLVED, public_id=public_id, snapshot=snapshot)


def apply_hash_outcome(state: ViewState, outcome: HashOutcome) -> TransitionResult:
    """Pure: turn a lookup outcome into a transition on the current state."""
    if outcome.kind == OutcomeKind.RESOLVED:
        return moved(PublicPracticeView(memorization=outcome.snapshot))
    if outcome.kind == OutcomeKind.NOT_FOUND:
        logger.info(f"Public content {outcome.public_id} not found")
        return moved(initial_state(), CLEAR_HASH, Effect(EffectKind.NOT_FOUND, NOT_FOUND_MESSAGE))
    if outcome.kind == OutcomeKind.STALE:
        return ignored(state, "superseded public link lookup")
    return ignored(state, "hash is not a public link")
