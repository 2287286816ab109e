"""
Recall — FSM Package

View-state controller logic: navigation gates, workflow handlers, the
complete event table and public-link routing. Everything here is a pure
function of (state, event, session) except HashRouter's lookup.
"""
from recall.fsm.effects import Effect, EffectKind, TransitionResult
from recall.fsm.hash_route import HashRouter, apply_hash_outcome, parse_public_hash
from recall.fsm.navigation import Screen, change_page, handle_session_change, resolve_screen
from recall.fsm.transitions import EVENTS, TRANSITIONS, dispatch

__all__ = [
    "Effect", "EffectKind", "TransitionResult",
    "HashRouter", "apply_hash_outcome", "parse_public_hash",
    "Screen", "change_page", "handle_session_change", "resolve_screen",
    "EVENTS", "TRANSITIONS", "dispatch",
]
