"""
Recall — Memorization Router
Saved memorization texts: create, list, delete, publish, and the public
lookup behind ``#/public/<id>`` links.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DBSession

from recall.content import store
from recall.database import get_db
from recall.routers.auth import get_current_user
from recall.state.session import UserSession

router = APIRouter(prefix="/api/memorization", tags=["memorization"])


# ─── Request/Response Models ─────────────────────────────────────────────────

class CreateContentRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    original_text: str = Field(min_length=1)
    selected_word_indices: List[int] = []

class SavedContentResponse(BaseModel):
    id: str
    title: str
    original_text: str
    selected_word_indices: List[int]
    is_published: bool
    public_id: Optional[str] = None
    created_at: str

class PublishResponse(BaseModel):
    public_id: str
    hash: str


def _to_response(content) -> SavedContentResponse:
    return SavedContentResponse(
        id=content.id,
        title=content.title,
        original_text=content.original_text,
        selected_word_indices=list(content.selected_word_indices or []),
        is_published=content.is_published,
        public_id=content.public_id,
        created_at=content.created_at.isoformat(),
    )


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("", response_model=SavedContentResponse, status_code=201)
def create_content(
    req: CreateContentRequest,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    content = store.create_saved_content(db, user, req.title, req.original_text, req.selected_word_indices)
    return _to_response(content)


@router.get("", response_model=List[SavedContentResponse])
def list_contents(user: UserSession = Depends(get_current_user), db: DBSession = Depends(get_db)):
    return [_to_response(c) for c in store.list_saved_contents(db, user.id)]


@router.get("/{content_id}/snapshot")
def get_snapshot(
    content_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    """Snapshot in the shape the LOAD_SAVED event expects."""
    content = store.get_saved_content(db, content_id, user.id)
    return store.snapshot_from_content(content).to_dict()


@router.delete("/{content_id}", status_code=204)
def delete_content(
    content_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    store.delete_saved_content(db, content_id, user.id)


@router.post("/{content_id}/publish", response_model=PublishResponse)
def publish_content(
    content_id: str,
    user: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    public_id = store.publish_saved_content(db, content_id, user.id)
    return PublishResponse(public_id=public_id, hash=f"#/public/{public_id}")


@router.get("/public/{public_id}")
async def get_public_content(public_id: str, db: DBSession = Depends(get_db)):
    """No auth: anyone holding the link may practice."""
    snapshot = await run_in_threadpool(store.fetch_public_content, db, public_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return snapshot.to_dict()
