"""
Recall — View Router
HTTP face of the view controller. Stateless: the client sends its current
view state with every event and gets back the next state, the side effects
to perform, and the screen to render.

The session is taken from the bearer token, never from the request body.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from recall.content.store import make_public_content_resolver
from recall.database import SessionLocal
from recall.fsm.effects import TransitionResult
from recall.fsm.hash_route import HashRouter, apply_hash_outcome
from recall.fsm.navigation import handle_session_change, resolve_screen
from recall.fsm.transitions import dispatch
from recall.routers.auth import get_session_context
from recall.state.session import SessionContext
from recall.state.view import ViewState, initial_state, state_from_dict, state_to_dict

router = APIRouter(prefix="/api/view", tags=["view"])


# ─── Request/Response Models ─────────────────────────────────────────────────

class TransitionRequest(BaseModel):
    state: Optional[Dict[str, Any]] = None
    event: str
    payload: Dict[str, Any] = {}

class SessionChangeRequest(BaseModel):
    state: Optional[Dict[str, Any]] = None

class HashRequest(BaseModel):
    state: Optional[Dict[str, Any]] = None
    hash: str = ""

class ViewResponse(BaseModel):
    state: Dict[str, Any]
    effects: List[Dict[str, Any]]
    screen: str


def _load_state(data: Optional[Dict[str, Any]]) -> ViewState:
    if data is None:
        return initial_state()
    try:
        return state_from_dict(data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _respond(result: TransitionResult, session: SessionContext) -> ViewResponse:
    return ViewResponse(
        state=state_to_dict(result.state),
        effects=[e.to_dict() for e in result.effects],
        screen=resolve_screen(result.state, session).value,
    )


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.get("/initial", response_model=ViewResponse)
def initial(session: SessionContext = Depends(get_session_context)):
    return _respond(TransitionResult(initial_state()), session)


@router.post("/transition", response_model=ViewResponse)
def transition(req: TransitionRequest, session: SessionContext = Depends(get_session_context)):
    state = _load_state(req.state)
    result = dispatch(state, req.event, session, req.payload)
    return _respond(result, session)


@router.post("/session", response_model=ViewResponse)
def session_changed(req: SessionChangeRequest, session: SessionContext = Depends(get_session_context)):
    """Called by the client right after sign-in or sign-out."""
    state = _load_state(req.state)
    return _respond(handle_session_change(state, session), session)


@router.post("/hash", response_model=ViewResponse)
async def hash_changed(req: HashRequest, session: SessionContext = Depends(get_session_context)):
    """
    Resolve a ``#/public/<id>`` deep link. Each request is its own lookup;
    ordering between concurrent hash requests is the client controller's job.
    """
    state = _load_state(req.state)
    hash_router = HashRouter(make_public_content_resolver(SessionLocal))
    outcome = await hash_router.resolve(req.hash)
    return _respond(apply_hash_outcome(state, outcome), session)
