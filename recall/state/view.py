"""
Recall — View State Schema

The client shows exactly one screen at a time. Each screen is one variant of
a tagged union: a frozen dataclass whose class-level ``page`` / ``step`` are
the tag and whose fields are the data carried into that step.

Rules:
- A step exists only inside its page (no flat record with optional fields).
- A variant that needs data cannot be built without it; handlers check the
  payload before constructing the next variant.
- States are immutable. Handlers build a new one, they never mutate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Optional


class Page(str, Enum):
    """Top-level workflows selectable from primary navigation."""
    NEW = "new"
    SAVED = "saved"
    ADMIN = "admin"
    DATABASE = "database"
    PRACTICE = "practice"
    PUBLIC_PRACTICE = "publicPractice"
    ASSIGNED_PRACTICE = "assignedPractice"
    PROOFREADING = "proofreading"
    SPELLING = "spelling"
    PROGRESS = "progress"
    ASSIGNMENTS = "assignments"
    ASSIGNMENT_MANAGEMENT = "assignmentManagement"
    PROOFREADING_ASSIGNMENTS = "proofreadingAssignments"
    LEARNING_HUB = "learningHub"


class Step(str, Enum):
    """Sub-stages inside the multi-step pages."""
    INPUT = "input"
    SELECTION = "selection"
    MEMORIZATION = "memorization"
    ANSWER_SETTING = "answerSetting"
    PREVIEW = "preview"
    PRACTICE = "practice"
    SAVED = "saved"
    ASSIGNMENT = "assignment"
    ASSIGNED_PRACTICE = "assignedPractice"


# ─── Carried payloads ────────────────────────────────────────────────────────

def _tuple(values) -> tuple:
    if values is None:
        return ()
    if isinstance(values, str):
        raise TypeError("expected a list, got a string")
    return tuple(values)


@dataclass(frozen=True)
class Word:
    """One token of a memorization text."""
    text: str
    index: int
    is_memorized: bool = False
    is_punctuation: bool = False
    highlight_group: Optional[int] = None
    is_paragraph_break: bool = False

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "index": self.index,
            "is_memorized": self.is_memorized,
            "is_punctuation": self.is_punctuation,
            "highlight_group": self.highlight_group,
            "is_paragraph_break": self.is_paragraph_break,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Word":
        return cls(
            text=data["text"],
            index=int(data["index"]),
            is_memorized=bool(data.get("is_memorized", False)),
            is_punctuation=bool(data.get("is_punctuation", False)),
            highlight_group=data.get("highlight_group"),
            is_paragraph_break=bool(data.get("is_paragraph_break", False)),
        )

    @classmethod
    def coerce(cls, value: Any) -> "Word":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class MemorizationSnapshot:
    """Fully materialized memorization session, loaded or freshly authored."""
    original_text: str
    words: tuple = ()
    selected_word_indices: tuple = ()
    hidden_words: frozenset = frozenset()
    title: Optional[str] = None
    content_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "original_text": self.original_text,
            "words": [w.to_dict() for w in self.words],
            "selected_word_indices": list(self.selected_word_indices),
            "hidden_words": sorted(self.hidden_words),
            "title": self.title,
            "content_id": self.content_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemorizationSnapshot":
        return cls(
            original_text=data["original_text"],
            words=tuple(Word.coerce(w) for w in data.get("words") or ()),
            selected_word_indices=tuple(int(i) for i in data.get("selected_word_indices") or ()),
            hidden_words=frozenset(int(i) for i in data.get("hidden_words") or ()),
            title=data.get("title"),
            content_id=data.get("content_id"),
        )

    @classmethod
    def coerce(cls, value: Any) -> "MemorizationSnapshot":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class ProofreadingAnswer:
    """Answer key entry: which word on which line is wrong, and its fix."""
    line_number: int
    word_index: int
    correction: str

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "word_index": self.word_index,
            "correction": self.correction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProofreadingAnswer":
        return cls(
            line_number=int(data["line_number"]),
            word_index=int(data["word_index"]),
            correction=str(data["correction"]),
        )

    @classmethod
    def coerce(cls, value: Any) -> "ProofreadingAnswer":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class ProofreadingPractice:
    id: str
    title: str
    sentences: tuple = ()
    answers: tuple = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "sentences": list(self.sentences),
            "answers": [a.to_dict() for a in self.answers],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProofreadingPractice":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            sentences=_tuple(data.get("sentences")),
            answers=tuple(ProofreadingAnswer.coerce(a) for a in data.get("answers") or ()),
        )

    @classmethod
    def coerce(cls, value: Any) -> "ProofreadingPractice":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class AssignedProofreading:
    """A proofreading practice as handed to a student through an assignment."""
    id: str
    practice_id: str
    title: str
    sentences: tuple = ()
    answers: tuple = ()
    due_date: Optional[str] = None
    completed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "practice_id": self.practice_id,
            "title": self.title,
            "sentences": list(self.sentences),
            "answers": [a.to_dict() for a in self.answers],
            "due_date": self.due_date,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AssignedProofreading":
        return cls(
            id=str(data["id"]),
            practice_id=str(data["practice_id"]),
            title=data.get("title", ""),
            sentences=_tuple(data.get("sentences")),
            answers=tuple(ProofreadingAnswer.coerce(a) for a in data.get("answers") or ()),
            due_date=data.get("due_date"),
            completed=bool(data.get("completed", False)),
        )

    @classmethod
    def coerce(cls, value: Any) -> "AssignedProofreading":
        return value if isinstance(value, cls) else cls.from_dict(value)


@dataclass(frozen=True)
class SpellingPractice:
    """A saved spelling list, optionally reached through an assignment."""
    id: str
    title: str
    words: tuple = ()
    assignment_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "words": list(self.words),
            "assignment_id": self.assignment_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SpellingPractice":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            words=_tuple(data.get("words")),
            assignment_id=data.get("assignment_id"),
        )

    @classmethod
    def coerce(cls, value: Any) -> "SpellingPractice":
        return value if isinstance(value, cls) else cls.from_dict(value)


# ─── The union ───────────────────────────────────────────────────────────────

class ViewState:
    """Base of every variant. ``page`` and ``step`` are the tag."""
    page: ClassVar[Page]
    step: ClassVar[Optional[Step]] = None

    @property
    def key(self) -> tuple:
        return (self.page, self.step)

    def payload(self) -> dict:
        return {}


# Memorization authoring

@dataclass(frozen=True)
class NewInput(ViewState):
    page = Page.NEW
    step = Step.INPUT
    text: Optional[str] = None

    def payload(self) -> dict:
        return {"text": self.text}


@dataclass(frozen=True)
class NewSelection(ViewState):
    page = Page.NEW
    step = Step.SELECTION
    text: str
    words: Optional[tuple] = None  # set when coming back from memorization

    def payload(self) -> dict:
        return {
            "text": self.text,
            "words": [w.to_dict() for w in self.words] if self.words is not None else None,
        }


@dataclass(frozen=True)
class NewMemorization(ViewState):
    page = Page.NEW
    step = Step.MEMORIZATION
    text: str
    words: tuple
    selected_indices: tuple

    def payload(self) -> dict:
        return {
            "text": self.text,
            "words": [w.to_dict() for w in self.words],
            "selected_indices": list(self.selected_indices),
        }


# Snapshot pages

@dataclass(frozen=True)
class PracticeView(ViewState):
    page = Page.PRACTICE
    memorization: MemorizationSnapshot

    def payload(self) -> dict:
        return {"memorization": self.memorization.to_dict()}


@dataclass(frozen=True)
class PublicPracticeView(ViewState):
    page = Page.PUBLIC_PRACTICE
    memorization: MemorizationSnapshot

    def payload(self) -> dict:
        return {"memorization": self.memorization.to_dict()}


@dataclass(frozen=True)
class AssignedPracticeView(ViewState):
    page = Page.ASSIGNED_PRACTICE
    memorization: MemorizationSnapshot
    assignment_id: Optional[str] = None

    def payload(self) -> dict:
        return {"memorization": self.memorization.to_dict(), "assignment_id": self.assignment_id}


# Proofreading

@dataclass(frozen=True)
class ProofreadingInput(ViewState):
    page = Page.PROOFREADING
    step = Step.INPUT


@dataclass(frozen=True)
class ProofreadingAnswerSetting(ViewState):
    page = Page.PROOFREADING
    step = Step.ANSWER_SETTING
    sentences: tuple

    def payload(self) -> dict:
        return {"sentences": list(self.sentences)}


@dataclass(frozen=True)
class ProofreadingPreview(ViewState):
    page = Page.PROOFREADING
    step = Step.PREVIEW
    sentences: tuple
    answers: tuple

    def payload(self) -> dict:
        return {"sentences": list(self.sentences), "answers": [a.to_dict() for a in self.answers]}


@dataclass(frozen=True)
class ProofreadingPracticeStep(ViewState):
    page = Page.PROOFREADING
    step = Step.PRACTICE
    sentences: tuple
    answers: tuple

    def payload(self) -> dict:
        return {"sentences": list(self.sentences), "answers": [a.to_dict() for a in self.answers]}


@dataclass(frozen=True)
class ProofreadingSaved(ViewState):
    page = Page.PROOFREADING
    step = Step.SAVED


@dataclass(frozen=True)
class ProofreadingAssignmentStep(ViewState):
    page = Page.PROOFREADING
    step = Step.ASSIGNMENT
    practice: ProofreadingPractice

    def payload(self) -> dict:
        return {"practice": self.practice.to_dict()}


@dataclass(frozen=True)
class ProofreadingAssignedPractice(ViewState):
    page = Page.PROOFREADING
    step = Step.ASSIGNED_PRACTICE
    assignment: AssignedProofreading

    def payload(self) -> dict:
        return {"assignment": self.assignment.to_dict()}


# Spelling

@dataclass(frozen=True)
class SpellingInput(ViewState):
    page = Page.SPELLING
    step = Step.INPUT


@dataclass(frozen=True)
class SpellingPreview(ViewState):
    page = Page.SPELLING
    step = Step.PREVIEW
    title: str
    words: tuple
    practice_id: Optional[str] = None

    def payload(self) -> dict:
        return {"title": self.title, "words": list(self.words), "practice_id": self.practice_id}


@dataclass(frozen=True)
class SpellingPracticeStep(ViewState):
    page = Page.SPELLING
    step = Step.PRACTICE
    title: str
    words: tuple
    practice_id: Optional[str] = None
    assignment_id: Optional[str] = None

    def payload(self) -> dict:
        return {
            "title": self.title,
            "words": list(self.words),
            "practice_id": self.practice_id,
            "assignment_id": self.assignment_id,
        }


@dataclass(frozen=True)
class SpellingSaved(ViewState):
    page = Page.SPELLING
    step = Step.SAVED


# Pages with no carried data. One class each so the tag stays on the class.

@dataclass(frozen=True)
class SavedView(ViewState):
    page = Page.SAVED


@dataclass(frozen=True)
class AdminView(ViewState):
    page = Page.ADMIN


@dataclass(frozen=True)
class DatabaseView(ViewState):
    page = Page.DATABASE


@dataclass(frozen=True)
class ProgressView(ViewState):
    page = Page.PROGRESS


@dataclass(frozen=True)
class AssignmentsView(ViewState):
    page = Page.ASSIGNMENTS


@dataclass(frozen=True)
class AssignmentManagementView(ViewState):
    page = Page.ASSIGNMENT_MANAGEMENT


@dataclass(frozen=True)
class ProofreadingAssignmentsView(ViewState):
    page = Page.PROOFREADING_ASSIGNMENTS


@dataclass(frozen=True)
class LearningHubView(ViewState):
    page = Page.LEARNING_HUB


# ─── Registry / serialization ────────────────────────────────────────────────

VARIANTS: dict = {
    cls.page.value if cls.step is None else (cls.page.value, cls.step.value): cls
    for cls in (
        NewInput, NewSelection, NewMemorization,
        PracticeView, PublicPracticeView, AssignedPracticeView,
        ProofreadingInput, ProofreadingAnswerSetting, ProofreadingPreview,
        ProofreadingPracticeStep, ProofreadingSaved, ProofreadingAssignmentStep,
        ProofreadingAssignedPractice,
        SpellingInput, SpellingPreview, SpellingPracticeStep, SpellingSaved,
        SavedView, AdminView, DatabaseView, ProgressView, AssignmentsView,
        AssignmentManagementView, ProofreadingAssignmentsView, LearningHubView,
    )
}


def initial_state() -> ViewState:
    """State at application mount and after every reset."""
    return NewInput()


def state_to_dict(state: ViewState) -> dict:
    """Serialize to a JSON-ready dict: the tag plus the carried payload."""
    data = {"page": state.page.value}
    if state.step is not None:
        data["step"] = state.step.value
    for key, value in state.payload().items():
        if value is not None:
            data[key] = value
    return data


def state_from_dict(data: dict) -> ViewState:
    """
    Deserialize a state produced by ``state_to_dict``.

    Raises ValueError for an unknown page/step tag or a payload the variant
    cannot be built from.
    """
    page = data.get("page")
    step = data.get("step")
    cls = VARIANTS.get((page, step)) if step is not None else VARIANTS.get(page)
    if cls is None:
        raise ValueError(f"Unknown view state: page={page!r} step={step!r}")

    try:
        if cls is NewInput:
            return NewInput(text=data.get("text"))
        if cls is NewSelection:
            words = data.get("words")
            return NewSelection(
                text=data["text"],
                words=tuple(Word.coerce(w) for w in words) if words is not None else None,
            )
        if cls is NewMemorization:
            return NewMemorization(
                text=data["text"],
                words=tuple(Word.coerce(w) for w in data["words"]),
                selected_indices=tuple(int(i) for i in data["selected_indices"]),
            )
        if cls in (PracticeView, PublicPracticeView):
            return cls(memorization=MemorizationSnapshot.coerce(data["memorization"]))
        if cls is AssignedPracticeView:
            return AssignedPracticeView(
                memorization=MemorizationSnapshot.coerce(data["memorization"]),
                assignment_id=data.get("assignment_id"),
            )
        if cls is ProofreadingAnswerSetting:
            return ProofreadingAnswerSetting(sentences=_tuple(data["sentences"]))
        if cls in (ProofreadingPreview, ProofreadingPracticeStep):
            return cls(
                sentences=_tuple(data["sentences"]),
                answers=tuple(ProofreadingAnswer.coerce(a) for a in data["answers"]),
            )
        if cls is ProofreadingAssignmentStep:
            return ProofreadingAssignmentStep(practice=ProofreadingPractice.coerce(data["practice"]))
        if cls is ProofreadingAssignedPractice:
            return ProofreadingAssignedPractice(
                assignment=AssignedProofreading.coerce(data["assignment"])
            )
        if cls is SpellingPreview:
            return SpellingPreview(
                title=data["title"],
                words=_tuple(data["words"]),
                practice_id=data.get("practice_id"),
            )
        if cls is SpellingPracticeStep:
            return SpellingPracticeStep(
                title=data["title"],
                words=_tuple(data["words"]),
                practice_id=data.get("practice_id"),
                assignment_id=data.get("assignment_id"),
            )
    except (KeyError, TypeError, ArithmeticError) as e:
        raise ValueError(f"Incomplete payload for {page}/{step}: {e}") from e

    return cls()
