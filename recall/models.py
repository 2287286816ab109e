"""
Recall — ORM Models
Users, saved memorization texts, spelling and proofreading practices,
and the assignments that hand them to students. UUID primary keys.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Boolean, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recall.database import Base


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _uuid() -> str:
    return str(uuid.uuid4())

def _now() -> datetime:
    return datetime.now(timezone.utc)


# ─── Users ───────────────────────────────────────────────────────────────────

class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(256))
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(10), default="user")  # "admin" | "user"
    can_access_proofreading: Mapped[bool] = mapped_column(Boolean, default=False)
    can_access_spelling: Mapped[bool] = mapped_column(Boolean, default=False)
    can_access_learning_hub: Mapped[bool] = mapped_column(Boolean, default=False)
    force_password_change: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now, onupdate=_now)

    # Relationships
    saved_contents: Mapped[list["SavedContent"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


# ─── Memorization ────────────────────────────────────────────────────────────

class SavedContent(Base):
    __tablename__ = "saved_contents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    original_text: Mapped[str] = mapped_column(Text)
    selected_word_indices: Mapped[list] = mapped_column(JSON, default=list)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    public_id: Mapped[Optional[str]] = mapped_column(String(36), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="saved_contents")


# ─── Practices ───────────────────────────────────────────────────────────────

class SpellingPractice(Base):
    __tablename__ = "spelling_practices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200))
    words: Mapped[list] = mapped_column(JSON)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)


class ProofreadingPractice(Base):
    __tablename__ = "proofreading_practices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200))
    sentences: Mapped[list] = mapped_column(JSON)
    answers: Mapped[list] = mapped_column(JSON)  # [{line_number, word_index, correction}]
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)


# ─── Assignments ─────────────────────────────────────────────────────────────

class Assignment(Base):
    """
    Admin-to-student binding of one saved item. ``practice_id`` points at
    saved_contents, spelling_practices or proofreading_practices depending
    on ``kind``.
    """
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    kind: Mapped[str] = mapped_column(String(20))  # "memorization" | "spelling" | "proofreading"
    practice_id: Mapped[str] = mapped_column(String(36), index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    assigned_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"))
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_assignments_user_kind", "user_id", "kind"),
    )
