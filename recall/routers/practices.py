"""
Recall — Practices Router
Spelling lists and proofreading exercises. Admins author; students list
the spelling practices assigned to them.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DBSession

from recall.content import store
from recall.database import get_db
from recall.routers.auth import get_current_user
from recall.state.session import UserSession
from recall.state.view import ProofreadingAnswer

router = APIRouter(prefix="/api", tags=["practices"])


# ─── Request Models ──────────────────────────────────────────────────────────

class CreateSpellingRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    words: List[str]

class AnswerModel(BaseModel):
    line_number: int
    word_index: int
    correction: str

class CreateProofreadingRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    sentences: List[str]
    answers: List[AnswerModel] = []


# ─── Spelling ────────────────────────────────────────────────────────────────

@router.post("/spelling", status_code=201)
def create_spelling(
    req: CreateSpellingRequest,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    return store.create_spelling_practice(db, user, req.title, req.words).to_dict()


@router.get("/spelling")
def list_spelling(user: UserSession = Depends(get_current_user), db: DBSession = Depends(get_db)):
    return [p.to_dict() for p in store.list_spelling_practices(db, user)]


@router.get("/spelling/{practice_id}")
def get_spelling(
    practice_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    return store.get_spelling_practice(db, user, practice_id).to_dict()


@router.delete("/spelling/{practice_id}", status_code=204)
def delete_spelling(
    practice_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    store.delete_spelling_practice(db, user, practice_id)


# ─── Proofreading ────────────────────────────────────────────────────────────

@router.post("/proofreading", status_code=201)
def create_proofreading(
    req: CreateProofreadingRequest,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    answers = [ProofreadingAnswer(a.line_number, a.word_index, a.correction) for a in req.answers]
    return store.create_proofreading_practice(db, user, req.title, req.sentences, answers).to_dict()


@router.get("/proofreading")
def list_proofreading(user: UserSession = Depends(get_current_user), db: DBSession = Depends(get_db)):
    return [p.to_dict() for p in store.list_proofreading_practices(db, user)]


@router.get("/proofreading/{practice_id}")
def get_proofreading(
    practice_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    return store.get_proofreading_practice(db, user, practice_id).to_dict()


@router.delete("/proofreading/{practice_id}", status_code=204)
def delete_proofreading(
    practice_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    store.delete_proofreading_practice(db, user, practice_id)
