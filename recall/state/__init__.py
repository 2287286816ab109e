"""
Recall — State Package

View state (what is on screen) and session context (who is looking).
"""
from recall.state.session import Capability, Role, SessionContext, UserSession
from recall.state.view import Page, Step, ViewState, initial_state, state_from_dict, state_to_dict

__all__ = [
    "Capability", "Role", "SessionContext", "UserSession",
    "Page", "Step", "ViewState", "initial_state", "state_from_dict", "state_to_dict",
]
