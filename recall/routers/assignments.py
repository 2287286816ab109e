"""
Recall — Assignments Router
Admins hand saved items to students; students list and complete theirs.
"""

from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session as DBSession

from recall.content import store
from recall.database import get_db
from recall.routers.auth import get_current_user
from recall.state.session import UserSession

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


class AssignRequest(BaseModel):
    kind: Literal["memorization", "spelling", "proofreading"]
    practice_id: str
    user_ids: List[str]
    due_date: Optional[datetime] = None

class AssignResponse(BaseModel):
    assignment_ids: List[str]


@router.post("", response_model=AssignResponse, status_code=201)
def assign(
    req: AssignRequest,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    created = store.assign_practice(db, user, req.kind, req.practice_id, req.user_ids, req.due_date)
    return AssignResponse(assignment_ids=[a.id for a in created])


@router.get("")
def practice_assignments(
    kind: str,
    practice_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    """Admin view: every student holding one item."""
    return store.list_assignments_for_practice(db, user, kind, practice_id)


@router.delete("/{assignment_id}", status_code=204)
def unassign(
    assignment_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    store.delete_assignment(db, user, assignment_id)


@router.get("/mine")
def my_assignments(
    kind: Optional[str] = None,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    return store.list_assignments_for_user(db, user.id, kind)


@router.post("/{assignment_id}/complete")
def complete(
    assignment_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    assignment = store.complete_assignment(db, user.id, assignment_id)
    return store.describe_assignment(db, assignment)
