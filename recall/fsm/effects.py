"""
Recall — Transition Results and Side Effects

Every transition returns a TransitionResult: the next state (possibly the
same object) and the side effects the shell must perform. A transition that
does not change state always carries at least one effect, so no event is
ever dropped silently.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from recall.state.view import ViewState


class EffectKind(str, Enum):
    SHOW_LOGIN = "show_login"                  # blocking login prompt
    HIDE_LOGIN = "hide_login"                  # user signed in, close the prompt
    PERMISSION_DENIED = "permission_denied"    # dismissible alert
    CLEAR_HASH = "clear_hash"                  # reset the URL hash side-channel
    NOT_FOUND = "not_found"                    # shared content is gone
    PASSWORD_CHANGE_REQUIRED = "password_change_required"
    IGNORED = "ignored"                        # precondition miss, not user-facing


# Kinds the user actually sees. IGNORED and CLEAR_HASH are plumbing.
USER_VISIBLE = frozenset({
    EffectKind.SHOW_LOGIN,
    EffectKind.PERMISSION_DENIED,
    EffectKind.NOT_FOUND,
    EffectKind.PASSWORD_CHANGE_REQUIRED,
})


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


@dataclass
class TransitionResult:
    """
    Outcome of one event.

    state: The state to commit (may be the input state)
    effects: Side effects for the shell, in order
    """
    state: ViewState
    effects: list = field(default_factory=list)

    def has(self, kind: EffectKind) -> bool:
        return any(e.kind == kind for e in self.effects)

    def changed_from(self, previous: ViewState) -> bool:
        return self.state != previous


def ignored(state: ViewState, reason: str) -> TransitionResult:
    """No-op for an event that arrived in the wrong state or with a bad payload."""
    return TransitionResult(state, [Effect(EffectKind.IGNORED, reason)])


def moved(state: ViewState, *effects: Effect) -> TransitionResult:
    return TransitionResult(state, list(effects))


CLEAR_HASH = Effect(EffectKind.CLEAR_HASH)
SHOW_LOGIN = Effect(EffectKind.SHOW_LOGIN)
HIDE_LOGIN = Effect(EffectKind.HIDE_LOGIN)
