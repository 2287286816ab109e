"""
Recall — Event Transition Matrix

Every externally triggerable event maps to exactly one handler. Handlers
check their own predecessor state, so the matrix is total over
(state × event): each pair yields either a new state or an effect.

``dispatch`` is the single entry point. It never raises.
"""

import logging
from typing import Any, Callable, Dict, Optional

from recall.fsm import handlers
from recall.fsm.effects import Effect, EffectKind, TransitionResult, ignored, moved
from recall.fsm.navigation import change_page
from recall.state.session import SessionContext
from recall.state.view import ViewState

logger = logging.getLogger("recall.fsm.transitions")

Handler = Callable[[ViewState, Dict[str, Any], SessionContext], TransitionResult]


def _change_page(state: ViewState, payload: Dict[str, Any], session: SessionContext) -> TransitionResult:
    return change_page(state, payload.get("page", ""), session)


# ─── The Complete Event Table ────────────────────────────────────────────────

TRANSITIONS: Dict[str, Handler] = {
    # Primary navigation
    "CHANGE_PAGE": _change_page,

    # Memorization
    "SUBMIT_TEXT": handlers.submit_text,
    "SUBMIT_WORDS": handlers.submit_words,
    "BACK_TO_INPUT": handlers.back_to_input,
    "BACK_TO_SELECTION": handlers.back_to_selection,
    "SAVE_MEMORIZATION": handlers.save_memorization,
    "VIEW_SAVED_MEMORIZATION": handlers.view_saved_memorization,
    "LOAD_SAVED": handlers.load_saved,
    "BACK_FROM_PRACTICE": handlers.back_from_practice,
    "CREATE_NEW_MEMORIZATION": handlers.create_new_memorization,
    "LEAVE_PUBLIC_PRACTICE": handlers.leave_public_practice,

    # Assignments
    "LOAD_ASSIGNED_MEMORIZATION": handlers.load_assigned_memorization,
    "BACK_FROM_ASSIGNED_PRACTICE": handlers.back_from_assigned_practice,
    "LOAD_ASSIGNED_SPELLING": handlers.load_assigned_spelling,
    "LOAD_ASSIGNED_PROOFREADING": handlers.load_assigned_proofreading,
    "BACK_FROM_PROOFREADING_ASSIGNMENT": handlers.back_from_proofreading_assignment,

    # Proofreading
    "SUBMIT_SENTENCES": handlers.submit_sentences,
    "SET_ANSWERS": handlers.set_answers,
    "PROOFREADING_PREVIEW_NEXT": handlers.proofreading_preview_next,
    "BACK_TO_PROOFREADING_PREVIEW": handlers.back_to_proofreading_preview,
    "BACK_TO_ANSWER_SETTING": handlers.back_to_answer_setting,
    "BACK_TO_PROOFREADING_INPUT": handlers.back_to_proofreading_input,
    "VIEW_SAVED_PROOFREADING": handlers.view_saved_proofreading,
    "SAVE_PROOFREADING": handlers.save_proofreading,
    "SELECT_PROOFREADING_PRACTICE": handlers.select_proofreading_practice,
    "ASSIGN_PROOFREADING_PRACTICE": handlers.assign_proofreading_practice,
    "BACK_TO_SAVED_PROOFREADING": handlers.back_to_saved_proofreading,

    # Spelling
    "SUBMIT_SPELLING_WORDS": handlers.submit_spelling_words,
    "SPELLING_PREVIEW_NEXT": handlers.spelling_preview_next,
    "BACK_TO_SPELLING_INPUT": handlers.back_to_spelling_input,
    "VIEW_SAVED_SPELLING": handlers.view_saved_spelling,
    "BACK_FROM_SPELLING_PRACTICE": handlers.back_from_spelling_practice,
    "SELECT_SPELLING_PRACTICE": handlers.select_spelling_practice,
    "START_SPELLING_PRACTICE": handlers.start_spelling_practice,
}

EVENTS = frozenset(TRANSITIONS)


def dispatch(
    state: ViewState,
    event: str,
    session: SessionContext,
    payload: Optional[Dict[str, Any]] = None,
) -> TransitionResult:
    """
    Apply one event to the current state.

    Guaranteed not to raise: unknown events, malformed payloads and wrong
    predecessor states all come back as an IGNORED no-op. A session under
    forced password change cannot navigate at all.
    """
    name = event.upper() if isinstance(event, str) else ""
    handler = TRANSITIONS.get(name)
    if handler is None:
        return ignored(state, f"unknown event: {event!r}")

    if session.user is not None and session.user.force_password_change:
        return moved(state, Effect(EffectKind.PASSWORD_CHANGE_REQUIRED))

    try:
        result = handler(state, dict(payload or {}), session)
    except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as e:
        logger.warning(f"{name} rejected on {state.page.value}: bad payload ({e})")
        return ignored(state, f"{name}: bad payload ({e})")

    if not result.effects and not result.changed_from(state):
        # Keep the "never dropped silently" rule even if a handler forgets
        return ignored(state, f"{name}: no change")
    return result


def validate_matrix_completeness() -> bool:
    """
    Verify every event has a callable handler.

    Returns True if complete, raises AssertionError if not.
    """
    missing = [name for name, handler in TRANSITIONS.items() if not callable(handler)]
    if missing:
        raise AssertionError(f"Events without handlers: {missing}")
    return True
