"""
Recall — Content Store

Data-layer operations behind the step components: saved memorization texts
(with publishing and public links), spelling and proofreading practices,
and assignments. Every function takes a SQLAlchemy session first and the
acting user where authorization matters.

Authoring (practices, assignments) is admin only. Saving memorization texts
is open to every signed-in user, capped for non-admins.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession

from recall.config import MAX_PROOFREADING_SENTENCES, MAX_SPELLING_WORDS, MEMORIZATION_SAVE_LIMIT
from recall.content.text import apply_selection, dedupe_words, process_text, split_proofreading_words
from recall.errors import ContentNotFound, InvalidContent, PermissionDenied, SaveLimitReached
from recall.models import Assignment, ProofreadingPractice, SavedContent, SpellingPractice, User
from recall.state import view
from recall.state.session import UserSession

logger = logging.getLogger("recall.content.store")

ASSIGNMENT_KINDS = ("memorization", "spelling", "proofreading")


def _require_admin(user: UserSession, action: str) -> None:
    if not user.is_admin:
        raise PermissionDenied(f"Only admins can {action}.")


# ═══════════════════════════════════════════════════════════════════════════
# Memorization texts
# ═══════════════════════════════════════════════════════════════════════════

def count_saved_contents(db: DBSession, user_id: str) -> int:
    return db.scalar(
        select(func.count()).select_from(SavedContent).where(SavedContent.user_id == user_id)
    ) or 0


def create_saved_content(
    db: DBSession,
    user: UserSession,
    title: str,
    original_text: str,
    selected_word_indices: Iterable[int],
) -> SavedContent:
    if not title.strip() or not original_text.strip():
        raise InvalidContent("Title and text are required.")

    if not user.is_admin:
        current = count_saved_contents(db, user.id)
        if current >= MEMORIZATION_SAVE_LIMIT:
            raise SaveLimitReached(MEMORIZATION_SAVE_LIMIT, current)

    content = SavedContent(
        user_id=user.id,
        title=title.strip(),
        original_text=original_text,
        selected_word_indices=sorted(set(int(i) for i in selected_word_indices)),
    )
    db.add(content)
    db.commit()
    logger.info(f"User {user.id} saved memorization {content.id}")
    return content


def list_saved_contents(db: DBSession, user_id: str) -> List[SavedContent]:
    return list(db.scalars(
        select(SavedContent)
        .where(SavedContent.user_id == user_id)
        .order_by(SavedContent.created_at.desc())
    ))


def get_saved_content(db: DBSession, content_id: str, user_id: str) -> SavedContent:
    content = db.get(SavedContent, content_id)
    if content is None or content.user_id != user_id:
        raise ContentNotFound("Saved content not found.")
    return content


def delete_saved_content(db: DBSession, content_id: str, user_id: str) -> None:
    content = get_saved_content(db, content_id, user_id)
    db.delete(content)
    db.commit()


def publish_saved_content(db: DBSession, content_id: str, user_id: str) -> str:
    """Make a saved text reachable at ``#/public/<public_id>``. Idempotent."""
    content = get_saved_content(db, content_id, user_id)
    if not content.is_published or not content.public_id:
        content.is_published = True
        content.public_id = str(uuid.uuid4())
        db.commit()
        logger.info(f"Published memorization {content.id} as {content.public_id}")
    return content.public_id


def snapshot_from_content(content: SavedContent) -> view.MemorizationSnapshot:
    """Rebuild the full practice snapshot from the stored text and selection."""
    indices = tuple(content.selected_word_indices or ())
    words = apply_selection(process_text(content.original_text), indices)
    return view.MemorizationSnapshot(
        original_text=content.original_text,
        words=tuple(words),
        selected_word_indices=indices,
        title=content.title,
        content_id=content.id,
    )


def fetch_public_content(db: DBSession, public_id: str) -> Optional[view.MemorizationSnapshot]:
    content = db.scalar(
        select(SavedContent).where(
            SavedContent.public_id == public_id,
            SavedContent.is_published.is_(True),
        )
    )
    return snapshot_from_content(content) if content is not None else None


def make_public_content_resolver(session_factory: Callable[[], DBSession]):
    """Async resolver for HashRouter. The query runs in the threadpool."""

    def _fetch(public_id: str) -> Optional[view.MemorizationSnapshot]:
        db = session_factory()
        try:
            return fetch_public_content(db, public_id)
        finally:
            db.close()

    async def resolve(public_id: str) -> Optional[view.MemorizationSnapshot]:
        return await run_in_threadpool(_fetch, public_id)

    return resolve


# ═══════════════════════════════════════════════════════════════════════════
# Spelling practices
# ═══════════════════════════════════════════════════════════════════════════

def _spelling_view(practice: SpellingPractice, assignment_id: Optional[str] = None) -> view.SpellingPractice:
    return view.SpellingPractice(
        id=practice.id,
        title=practice.title,
        words=tuple(practice.words),
        assignment_id=assignment_id,
    )


def create_spelling_practice(db: DBSession, user: UserSession, title: str, words: List[str]) -> view.SpellingPractice:
    _require_admin(user, "create spelling practices")
    words = dedupe_words(words)
    if not title.strip() or not words:
        raise InvalidContent("Title and at least one word are required.")
    if len(words) > MAX_SPELLING_WORDS:
        raise InvalidContent(f"A spelling practice can hold at most {MAX_SPELLING_WORDS} words.")

    practice = SpellingPractice(title=title.strip(), words=words, created_by=user.id)
    db.add(practice)
    db.commit()
    return _spelling_view(practice)


def list_spelling_practices(db: DBSession, user: UserSession) -> List[view.SpellingPractice]:
    """Admins see every practice; students see the ones assigned to them."""
    if user.is_admin:
        rows = db.scalars(select(SpellingPractice).order_by(SpellingPractice.created_at.desc()))
        return [_spelling_view(p) for p in rows]

    rows = db.execute(
        select(SpellingPractice, Assignment.id)
        .join(Assignment, Assignment.practice_id == SpellingPractice.id)
        .where(Assignment.kind == "spelling", Assignment.user_id == user.id)
        .order_by(Assignment.assigned_at.desc())
    )
    return [_spelling_view(practice, assignment_id) for practice, assignment_id in rows]


def get_spelling_practice(db: DBSession, user: UserSession, practice_id: str) -> view.SpellingPractice:
    """Admins read any practice; students only one assigned to them."""
    practice = db.get(SpellingPractice, practice_id)
    if practice is None:
        raise ContentNotFound("Spelling practice not found.")
    if user.is_admin:
        return _spelling_view(practice)

    assignment_id = db.scalar(
        select(Assignment.id).where(
            Assignment.kind == "spelling",
            Assignment.practice_id == practice_id,
            Assignment.user_id == user.id,
        )
    )
    if assignment_id is None:
        raise ContentNotFound("Spelling practice not found.")
    return _spelling_view(practice, assignment_id)


def delete_spelling_practice(db: DBSession, user: UserSession, practice_id: str) -> None:
    _require_admin(user, "delete spelling practices")
    practice = db.get(SpellingPractice, practice_id)
    if practice is None:
        raise ContentNotFound("Spelling practice not found.")
    _delete_assignments_for(db, "spelling", practice_id)
    db.delete(practice)
    db.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Proofreading practices
# ═══════════════════════════════════════════════════════════════════════════

def _proofreading_view(practice: ProofreadingPractice) -> view.ProofreadingPractice:
    return view.ProofreadingPractice(
        id=practice.id,
        title=practice.title,
        sentences=tuple(practice.sentences),
        answers=tuple(view.ProofreadingAnswer.from_dict(a) for a in practice.answers),
    )


def validate_answer_key(sentences: List[str], answers: List[view.ProofreadingAnswer]) -> None:
    """Every answer must point at an existing word of an existing line."""
    for answer in answers:
        if not 0 <= answer.line_number < len(sentences):
            raise InvalidContent(f"Answer refers to missing line {answer.line_number}.")
        words = split_proofreading_words(sentences[answer.line_number])
        if not 0 <= answer.word_index < len(words):
            raise InvalidContent(
                f"Answer refers to missing word {answer.word_index} on line {answer.line_number}."
            )
        if not answer.correction.strip():
            raise InvalidContent("Corrections must not be empty.")


def create_proofreading_practice(
    db: DBSession,
    user: UserSession,
    title: str,
    sentences: List[str],
    answers: List[view.ProofreadingAnswer],
) -> view.ProofreadingPractice:
    _require_admin(user, "create proofreading practices")
    sentences = [s.strip() for s in sentences if s and s.strip()]
    if not title.strip() or not sentences:
        raise InvalidContent("Title and at least one sentence are required.")
    if len(sentences) > MAX_PROOFREADING_SENTENCES:
        raise InvalidContent(f"A proofreading practice can hold at most {MAX_PROOFREADING_SENTENCES} sentences.")
    validate_answer_key(sentences, answers)

    practice = ProofreadingPractice(
        title=title.strip(),
        sentences=sentences,
        answers=[a.to_dict() for a in answers],
        created_by=user.id,
    )
    db.add(practice)
    db.commit()
    return _proofreading_view(practice)


def list_proofreading_practices(db: DBSession, user: UserSession) -> List[view.ProofreadingPractice]:
    _require_admin(user, "browse proofreading practices")
    rows = db.scalars(select(ProofreadingPractice).order_by(ProofreadingPractice.created_at.desc()))
    return [_proofreading_view(p) for p in rows]


def get_proofreading_practice(db: DBSession, user: UserSession, practice_id: str) -> view.ProofreadingPractice:
    _require_admin(user, "browse proofreading practices")
    practice = db.get(ProofreadingPractice, practice_id)
    if practice is None:
        raise ContentNotFound("Proofreading practice not found.")
    return _proofreading_view(practice)


def delete_proofreading_practice(db: DBSession, user: UserSession, practice_id: str) -> None:
    _require_admin(user, "delete proofreading practices")
    practice = db.get(ProofreadingPractice, practice_id)
    if practice is None:
        raise ContentNotFound("Proofreading practice not found.")
    _delete_assignments_for(db, "proofreading", practice_id)
    db.delete(practice)
    db.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Assignments
# ═══════════════════════════════════════════════════════════════════════════

_KIND_MODELS = {
    "memorization": SavedContent,
    "spelling": SpellingPractice,
    "proofreading": ProofreadingPractice,
}


def _delete_assignments_for(db: DBSession, kind: str, practice_id: str) -> None:
    for assignment in db.scalars(
        select(Assignment).where(Assignment.kind == kind, Assignment.practice_id == practice_id)
    ):
        db.delete(assignment)


def assign_practice(
    db: DBSession,
    user: UserSession,
    kind: str,
    practice_id: str,
    user_ids: Iterable[str],
    due_date: Optional[datetime] = None,
) -> List[Assignment]:
    """
    Assign one item to several students. Students who already hold an open
    assignment for the same item are skipped. Returns the new rows.
    """
    _require_admin(user, "assign practices")
    model = _KIND_MODELS.get(kind)
    if model is None:
        raise InvalidContent(f"Unknown assignment kind: {kind}")
    if db.get(model, practice_id) is None:
        raise ContentNotFound(f"{kind.capitalize()} item not found.")

    created = []
    for student_id in dict.fromkeys(user_ids):
        if db.get(User, student_id) is None:
            raise ContentNotFound(f"User {student_id} not found.")
        existing = db.scalar(
            select(Assignment).where(
                Assignment.kind == kind,
                Assignment.practice_id == practice_id,
                Assignment.user_id == student_id,
                Assignment.completed.is_(False),
            )
        )
        if existing is not None:
            continue
        assignment = Assignment(
            kind=kind,
            practice_id=practice_id,
            user_id=student_id,
            assigned_by=user.id,
            due_date=due_date,
        )
        db.add(assignment)
        created.append(assignment)

    db.commit()
    logger.info(f"Assigned {kind} {practice_id} to {len(created)} user(s)")
    return created


def describe_assignment(db: DBSession, assignment: Assignment) -> Optional[dict]:
    """
    Assignment row plus the item in the shape its practice step expects.
    Returns None when the underlying item was deleted.
    """
    model = _KIND_MODELS[assignment.kind]
    item = db.get(model, assignment.practice_id)
    if item is None:
        return None

    if assignment.kind == "memorization":
        payload = snapshot_from_content(item).to_dict()
    elif assignment.kind == "spelling":
        payload = _spelling_view(item, assignment.id).to_dict()
    else:
        practice = _proofreading_view(item)
        payload = view.AssignedProofreading(
            id=assignment.id,
            practice_id=practice.id,
            title=practice.title,
            sentences=practice.sentences,
            answers=practice.answers,
            due_date=assignment.due_date.isoformat() if assignment.due_date else None,
            completed=assignment.completed,
        ).to_dict()

    return {
        "id": assignment.id,
        "kind": assignment.kind,
        "practice_id": assignment.practice_id,
        "assigned_at": assignment.assigned_at.isoformat(),
        "due_date": assignment.due_date.isoformat() if assignment.due_date else None,
        "completed": assignment.completed,
        "completed_at": assignment.completed_at.isoformat() if assignment.completed_at else None,
        "item": payload,
    }


def list_assignments_for_user(db: DBSession, user_id: str, kind: Optional[str] = None) -> List[dict]:
    query = select(Assignment).where(Assignment.user_id == user_id)
    if kind is not None:
        query = query.where(Assignment.kind == kind)
    query = query.order_by(Assignment.completed, Assignment.assigned_at.desc())

    described = (describe_assignment(db, a) for a in db.scalars(query))
    return [d for d in described if d is not None]


def complete_assignment(db: DBSession, user_id: str, assignment_id: str) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None or assignment.user_id != user_id:
        raise ContentNotFound("Assignment not found.")
    if not assignment.completed:
        assignment.completed = True
        assignment.completed_at = datetime.now(timezone.utc)
        db.commit()
    return assignment


def list_assignments_for_practice(db: DBSession, user: UserSession, kind: str, practice_id: str) -> List[dict]:
    """Who holds one item, and whether they finished it."""
    _require_admin(user, "view assignments")
    if kind not in _KIND_MODELS:
        raise InvalidContent(f"Unknown assignment kind: {kind}")

    rows = db.execute(
        select(Assignment, User)
        .join(User, Assignment.user_id == User.id)
        .where(Assignment.kind == kind, Assignment.practice_id == practice_id)
        .order_by(User.username)
    )
    return [
        {
            "id": assignment.id,
            "user_id": student.id,
            "username": student.username,
            "display_name": student.display_name,
            "assigned_at": assignment.assigned_at.isoformat(),
            "due_date": assignment.due_date.isoformat() if assignment.due_date else None,
            "completed": assignment.completed,
            "completed_at": assignment.completed_at.isoformat() if assignment.completed_at else None,
        }
        for assignment, student in rows
    ]


def delete_assignment(db: DBSession, user: UserSession, assignment_id: str) -> None:
    _require_admin(user, "remove assignments")
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise ContentNotFound("Assignment not found.")
    db.delete(assignment)
    db.commit()
