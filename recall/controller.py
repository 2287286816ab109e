"""
Recall — View Controller

Owns the single state cell. Every change goes through ``_commit``, which
applies the shell-facing effects (hash, login prompt), forwards them to the
listener, and cancels interest in any public-link lookup that a synchronous
transition has overtaken.

Usage:
    controller = ViewController(resolver, on_effect=show_notice)
    await controller.start(window_hash)
    controller.set_session(SessionContext(user=user))
    controller.change_page("spelling")
    controller.dispatch("SPELLING_PREVIEW_NEXT")
"""

import logging
from typing import Any, Callable, Dict, Optional, Union

from recall.fsm.effects import USER_VISIBLE, Effect, EffectKind, TransitionResult
from recall.fsm.hash_route import HashRouter, PublicContentResolver, apply_hash_outcome
from recall.fsm.navigation import Screen, handle_session_change, resolve_screen
from recall.fsm.transitions import dispatch
from recall.state.session import SIGNED_OUT, SessionContext
from recall.state.view import Page, ViewState, initial_state

logger = logging.getLogger("recall.controller")


class ViewController:
    """Single source of truth for what is on screen."""

    def __init__(
        self,
        resolver: PublicContentResolver,
        session: Optional[SessionContext] = None,
        on_effect: Optional[Callable[[Effect], Any]] = None,
    ):
        self._state: ViewState = initial_state()
        self._session: SessionContext = session or SIGNED_OUT
        self._hash: str = ""
        self._router = HashRouter(resolver)
        self._pending_lookups = 0
        self._on_effect = on_effect
        self.login_visible = False

    # ─── Read side ───────────────────────────────────────────────────────────

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def hash(self) -> str:
        return self._hash

    @property
    def screen(self) -> Screen:
        return resolve_screen(self._state, self._session)

    # ─── Events ──────────────────────────────────────────────────────────────

    def dispatch(self, event: str, payload: Optional[Dict[str, Any]] = None) -> TransitionResult:
        result = dispatch(self._state, event, self._session, payload)
        self._commit(result)
        return result

    def change_page(self, page: Union[Page, str]) -> TransitionResult:
        target = page.value if isinstance(page, Page) else page
        return self.dispatch("CHANGE_PAGE", {"page": target})

    def set_session(self, session: SessionContext) -> TransitionResult:
        """Session provider callback. Re-checks the gates on every change."""
        self._session = session
        result = handle_session_change(self._state, session)
        self._commit(result)
        return result

    async def on_hash_change(self, hash_value: Optional[str]) -> TransitionResult:
        """Browser hashchange callback. Only the latest lookup may land."""
        self._hash = hash_value or ""
        self._pending_lookups += 1
        try:
            outcome = await self._router.resolve(hash_value)
        finally:
            self._pending_lookups -= 1
        result = apply_hash_outcome(self._state, outcome)
        self._commit(result, from_hash=True)
        return result

    async def start(self, hash_value: Optional[str] = None) -> TransitionResult:
        """Mount: honour a deep link the page was opened with."""
        return await self.on_hash_change(hash_value)

    # ─── Commit ──────────────────────────────────────────────────────────────

    def _commit(self, result: TransitionResult, from_hash: bool = False) -> None:
        if not from_hash and (
            result.changed_from(self._state) or result.has(EffectKind.CLEAR_HASH)
        ):
            self._router.invalidate()
            if self._pending_lookups:
                # An abandoned public link must not survive a reload
                self._hash = ""

        previous = self._state
        self._state = result.state
        if result.state is not previous:
            logger.debug(f"View {previous.key} -> {result.state.key}")

        for effect in result.effects:
            self._apply(effect)

    def _apply(self, effect: Effect) -> None:
        if effect.kind == EffectKind.CLEAR_HASH:
            self._hash = ""
        elif effect.kind == EffectKind.SHOW_LOGIN:
            self.login_visible = True
        elif effect.kind == EffectKind.HIDE_LOGIN:
            self.login_visible = False

        level = logging.INFO if effect.kind in USER_VISIBLE else logging.DEBUG
        logger.log(level, f"Effect {effect.kind.value}: {effect.message}")

        if self._on_effect is not None:
            self._on_effect(effect)
