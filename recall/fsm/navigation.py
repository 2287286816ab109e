"""
Recall — Navigation Gates

Primary navigation (``change_page``), the session-change hook and the
screen resolver. These are the only places that look at auth and
capability flags; workflow handlers call ``change_page`` whenever they
leave their own page so the same gates apply.

Gate order for change_page:
1. Not signed in + restricted page      → SHOW_LOGIN, no state change
2. Missing capability (admins bypass)   → PERMISSION_DENIED, no state change
3. Otherwise                            → CLEAR_HASH + the page's entry state
"""

import logging
from enum import Enum
from typing import Optional, Union

from recall.fsm.effects import (
    CLEAR_HASH, HIDE_LOGIN, SHOW_LOGIN, Effect, EffectKind, TransitionResult,
    ignored, moved,
)
from recall.state.session import CAPABILITY_LABELS, Capability, SessionContext
from recall.state.view import (
    AdminView, AssignmentManagementView, AssignmentsView, DatabaseView,
    LearningHubView, NewInput, Page, ProgressView, ProofreadingAssignmentsView,
    ProofreadingInput, SavedView, SpellingInput, SpellingSaved, Step, ViewState,
    initial_state,
)

logger = logging.getLogger("recall.fsm.navigation")


# ─── Page sets ───────────────────────────────────────────────────────────────

# change_page asks for a login before entering these
RESTRICTED_PAGES = frozenset({
    Page.SAVED, Page.ADMIN, Page.DATABASE, Page.SPELLING, Page.PROGRESS,
    Page.ASSIGNMENTS, Page.ASSIGNMENT_MANAGEMENT, Page.PROOFREADING_ASSIGNMENTS,
    Page.LEARNING_HUB,
})

# Signing out while on one of these sends the user home
SIGN_OUT_RESET_PAGES = frozenset({
    Page.SAVED, Page.ADMIN, Page.DATABASE, Page.PRACTICE,
})

# A signed-out user who somehow sits on these sees the login screen
LOGIN_SCREEN_PAGES = frozenset({Page.SAVED, Page.ADMIN, Page.DATABASE})

PAGE_CAPABILITY = {
    Page.PROOFREADING: Capability.PROOFREADING,
    Page.PROOFREADING_ASSIGNMENTS: Capability.PROOFREADING,
    Page.SPELLING: Capability.SPELLING,
    Page.LEARNING_HUB: Capability.LEARNING_HUB,
}

# Steps only admins author in; students are moved to their entry state
ADMIN_ONLY_STEPS = frozenset({
    (Page.PROOFREADING, Step.INPUT),
    (Page.PROOFREADING, Step.ANSWER_SETTING),
    (Page.PROOFREADING, Step.PREVIEW),
    (Page.PROOFREADING, Step.SAVED),
    (Page.PROOFREADING, Step.ASSIGNMENT),
    (Page.SPELLING, Step.INPUT),
    (Page.SPELLING, Step.PREVIEW),
})

# Pages with a data-free entry state. Snapshot pages (practice,
# publicPractice, assignedPractice) are not reachable from the nav bar.
_SIMPLE_ENTRY = {
    Page.NEW: NewInput,
    Page.SAVED: SavedView,
    Page.ADMIN: AdminView,
    Page.DATABASE: DatabaseView,
    Page.PROGRESS: ProgressView,
    Page.ASSIGNMENTS: AssignmentsView,
    Page.ASSIGNMENT_MANAGEMENT: AssignmentManagementView,
    Page.PROOFREADING_ASSIGNMENTS: ProofreadingAssignmentsView,
    Page.LEARNING_HUB: LearningHubView,
}

NAVIGABLE_PAGES = frozenset(_SIMPLE_ENTRY) | {Page.PROOFREADING, Page.SPELLING}


def _as_page(target: Union[Page, str]) -> Optional[Page]:
    if isinstance(target, Page):
        return target
    try:
        return Page(target)
    except ValueError:
        return None


def entry_state(page: Page, session: SessionContext) -> Optional[ViewState]:
    """
    Canonical landing state for a page. Role-dependent for the two
    authoring workflows: admins author, everyone else practices.
    """
    if page == Page.PROOFREADING:
        return ProofreadingInput() if session.is_admin else ProofreadingAssignmentsView()
    if page == Page.SPELLING:
        return SpellingInput() if session.is_admin else SpellingSaved()
    cls = _SIMPLE_ENTRY.get(page)
    return cls() if cls else None


def permission_denied(capability: Capability) -> Effect:
    return Effect(
        EffectKind.PERMISSION_DENIED,
        f"You do not have permission to access {CAPABILITY_LABELS[capability]}.",
    )


def check_gates(page: Page, session: SessionContext) -> Optional[Effect]:
    """Return the blocking effect for entering ``page``, or None when allowed."""
    if not session.authenticated and page in RESTRICTED_PAGES:
        return SHOW_LOGIN
    capability = PAGE_CAPABILITY.get(page)
    if capability is not None and not session.can_access(capability):
        return permission_denied(capability)
    return None


# ─── Operations ──────────────────────────────────────────────────────────────

def change_page(
    state: ViewState,
    target: Union[Page, str],
    session: SessionContext,
) -> TransitionResult:
    """Primary navigation. See module docstring for gate order."""
    page = _as_page(target)
    if page is None or page not in NAVIGABLE_PAGES:
        return ignored(state, f"not a navigation target: {target!r}")

    blocked = check_gates(page, session)
    if blocked is not None:
        logger.info(f"Navigation to {page.value} blocked: {blocked.kind.value}")
        return moved(state, blocked)

    return moved(entry_state(page, session), CLEAR_HASH)


def should_reset_on_sign_out(state: ViewState) -> bool:
    return state.page in SIGN_OUT_RESET_PAGES or state.key == (Page.SPELLING, Step.SAVED)


def handle_session_change(state: ViewState, session: SessionContext) -> TransitionResult:
    """
    Re-apply the gates after the session provider reports a change.

    Signed out: leave restricted pages. Signed in: close the login prompt,
    leave pages whose capability was revoked, and move non-admins off
    authoring steps.
    """
    if session.loading:
        return ignored(state, "session still loading")

    if not session.authenticated:
        if should_reset_on_sign_out(state):
            logger.info(f"Signed out on {state.page.value}, resetting view")
            return moved(initial_state(), CLEAR_HASH)
        return ignored(state, "signed out on an unrestricted page")

    capability = PAGE_CAPABILITY.get(state.page)
    if capability is not None and not session.can_access(capability):
        logger.info(f"Capability {capability.value} missing on {state.page.value}, resetting view")
        return moved(initial_state(), HIDE_LOGIN, permission_denied(capability))

    if not session.is_admin and state.key in ADMIN_ONLY_STEPS:
        return moved(entry_state(state.page, session), HIDE_LOGIN)

    return moved(state, HIDE_LOGIN)


# ─── Screen resolution ───────────────────────────────────────────────────────

class Screen(str, Enum):
    LOADING = "loading"
    FORCE_PASSWORD_CHANGE = "force_password_change"
    LOGIN = "login"
    PAGE = "page"


def resolve_screen(state: ViewState, session: SessionContext) -> Screen:
    """
    What to render. Pure: never changes state. The forced password change
    screen wins over every page.
    """
    if session.loading:
        return Screen.LOADING
    if session.user is not None and session.user.force_password_change:
        return Screen.FORCE_PASSWORD_CHANGE
    if not session.authenticated and state.page in LOGIN_SCREEN_PAGES:
        return Screen.LOGIN
    return Screen.PAGE
