"""
Recall — Workflow Handlers

One function per workflow event. Each handler receives:
    - state: current ViewState
    - payload: dict of event data (JSON dicts or already-typed objects)
    - session: SessionContext

Each handler returns a TransitionResult. A handler only acts when the
current state is its expected predecessor and the payload carries what the
next step needs; otherwise it returns an IGNORED no-op.

Handlers that leave their own workflow for a gated page go through
``change_page`` so login and capability checks are never skipped.
"""

import logging
from typing import Any, Dict

from recall.content.text import (
    dedupe_words, parse_spelling_words, selected_word_indices, split_sentences,
)
from recall.fsm.effects import CLEAR_HASH, TransitionResult, ignored, moved
from recall.fsm.navigation import change_page, check_gates, entry_state
from recall.state.session import SessionContext
from recall.state.view import (
    AssignedPracticeView, AssignedProofreading, AssignmentsView,
    MemorizationSnapshot, NewInput, NewMemorization, NewSelection, Page,
    PracticeView, ProofreadingAnswer, ProofreadingAnswerSetting,
    ProofreadingAssignedPractice, ProofreadingAssignmentStep,
    ProofreadingAssignmentsView, ProofreadingInput, ProofreadingPractice,
    ProofreadingPracticeStep, ProofreadingPreview, ProofreadingSaved,
    PublicPracticeView, SavedView, SpellingInput, SpellingPractice,
    SpellingPracticeStep, SpellingPreview, SpellingSaved, ViewState, Word,
    initial_state,
)

logger = logging.getLogger("recall.fsm.handlers")

Payload = Dict[str, Any]


# ─── Payload helpers ─────────────────────────────────────────────────────────

def _wrong_step(state: ViewState, handler: str) -> TransitionResult:
    where = state.page.value if state.step is None else f"{state.page.value}/{state.step.value}"
    return ignored(state, f"{handler} not valid on {where}")


def _text(payload: Payload, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' must be a non-empty string")
    return value


def _string_list(payload: Payload, key: str) -> tuple:
    """Non-empty list of strings, blank entries dropped."""
    value = payload.get(key)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{key}' must be a list")
    items = tuple(str(v).strip() for v in value if str(v).strip())
    if not items:
        raise ValueError(f"'{key}' must not be empty")
    return items


# ═══════════════════════════════════════════════════════════════════════════
# Memorization (page "new" and the snapshot pages)
# ═══════════════════════════════════════════════════════════════════════════

def submit_text(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """new/input → new/selection, carrying the text."""
    if not isinstance(state, NewInput):
        return _wrong_step(state, "submit_text")
    return moved(NewSelection(text=_text(payload, "text")))


def submit_words(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """new/selection → new/memorization with the chosen words."""
    if not isinstance(state, NewSelection):
        return _wrong_step(state, "submit_words")

    words = tuple(Word.coerce(w) for w in payload.get("words") or ())
    if not words:
        raise ValueError("'words' must not be empty")
    if payload.get("selected_indices") is not None:
        selected = tuple(int(i) for i in payload["selected_indices"])
    else:
        selected = tuple(selected_word_indices(words))
    return moved(NewMemorization(text=state.text, words=words, selected_indices=selected))


def back_to_input(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """new/selection → new/input, keeping the text for editing."""
    if not isinstance(state, NewSelection):
        return _wrong_step(state, "back_to_input")
    return moved(NewInput(text=state.text))


def back_to_selection(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """new/memorization → new/selection, keeping text and word marks."""
    if not isinstance(state, NewMemorization):
        return _wrong_step(state, "back_to_selection")
    return moved(NewSelection(text=state.text, words=state.words))


def save_memorization(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """After the data layer stored the text, show the saved list."""
    if not isinstance(state, NewMemorization):
        return _wrong_step(state, "save_memorization")
    return change_page(state, Page.SAVED, session)


def view_saved_memorization(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if state.page not in (Page.NEW, Page.PRACTICE):
        return _wrong_step(state, "view_saved_memorization")
    return change_page(state, Page.SAVED, session)


def load_saved(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """saved → practice with the stored snapshot."""
    if not isinstance(state, SavedView):
        return _wrong_step(state, "load_saved")
    return moved(PracticeView(memorization=MemorizationSnapshot.coerce(payload["memorization"])))


def back_from_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, PracticeView):
        return _wrong_step(state, "back_from_practice")
    return moved(SavedView())


def create_new_memorization(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, SavedView):
        return _wrong_step(state, "create_new_memorization")
    return moved(NewInput())


def leave_public_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """Leaving a shared link drops the hash so a reload does not reopen it."""
    if not isinstance(state, PublicPracticeView):
        return _wrong_step(state, "leave_public_practice")
    return moved(initial_state(), CLEAR_HASH)


# ═══════════════════════════════════════════════════════════════════════════
# Assignments
# ═══════════════════════════════════════════════════════════════════════════

def load_assigned_memorization(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, AssignmentsView):
        return _wrong_step(state, "load_assigned_memorization")
    return moved(AssignedPracticeView(
        memorization=MemorizationSnapshot.coerce(payload["memorization"]),
        assignment_id=payload.get("assignment_id"),
    ))


def back_from_assigned_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, AssignedPracticeView):
        return _wrong_step(state, "back_from_assigned_practice")
    return moved(AssignmentsView())


def load_assigned_spelling(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """assignments → spelling/practice. Re-checks the spelling gate."""
    if not isinstance(state, AssignmentsView):
        return _wrong_step(state, "load_assigned_spelling")

    blocked = check_gates(Page.SPELLING, session)
    if blocked is not None:
        return moved(state, blocked)

    practice = SpellingPractice.coerce(payload["practice"])
    if not practice.words:
        raise ValueError("assigned spelling practice has no words")
    return moved(SpellingPracticeStep(
        title=practice.title,
        words=practice.words,
        practice_id=practice.id,
        assignment_id=payload.get("assignment_id") or practice.assignment_id,
    ))


def load_assigned_proofreading(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """assignments or proofreadingAssignments → proofreading/assignedPractice."""
    if not isinstance(state, (AssignmentsView, ProofreadingAssignmentsView)):
        return _wrong_step(state, "load_assigned_proofreading")

    blocked = check_gates(Page.PROOFREADING, session)
    if blocked is not None:
        return moved(state, blocked)

    assignment = AssignedProofreading.coerce(payload["assignment"])
    if not assignment.sentences:
        raise ValueError("assigned proofreading practice has no sentences")
    return moved(ProofreadingAssignedPractice(assignment=assignment))


def back_from_proofreading_assignment(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingAssignedPractice):
        return _wrong_step(state, "back_from_proofreading_assignment")
    return moved(ProofreadingAssignmentsView())


# ═══════════════════════════════════════════════════════════════════════════
# Proofreading
# ═══════════════════════════════════════════════════════════════════════════

def submit_sentences(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """input → answerSetting. Takes a ``sentences`` list or raw ``text``, one line each."""
    if not isinstance(state, ProofreadingInput):
        return _wrong_step(state, "submit_sentences")
    if "text" in payload:
        sentences = tuple(split_sentences(_text(payload, "text")))
    else:
        sentences = _string_list(payload, "sentences")
    return moved(ProofreadingAnswerSetting(sentences=sentences))


def set_answers(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """answerSetting → preview. An empty answer key is allowed."""
    if not isinstance(state, ProofreadingAnswerSetting):
        return _wrong_step(state, "set_answers")

    raw = payload.get("answers")
    if not isinstance(raw, (list, tuple)):
        raise ValueError("'answers' must be a list")
    answers = tuple(ProofreadingAnswer.coerce(a) for a in raw)
    for answer in answers:
        if not 0 <= answer.line_number < len(state.sentences):
            raise ValueError(f"answer line {answer.line_number} out of range")
    return moved(ProofreadingPreview(sentences=state.sentences, answers=answers))


def proofreading_preview_next(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingPreview):
        return _wrong_step(state, "proofreading_preview_next")
    return moved(ProofreadingPracticeStep(sentences=state.sentences, answers=state.answers))


def back_to_proofreading_preview(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingPracticeStep):
        return _wrong_step(state, "back_to_proofreading_preview")
    if not session.is_admin:
        return moved(entry_state(Page.PROOFREADING, session))
    return moved(ProofreadingPreview(sentences=state.sentences, answers=state.answers))


def back_to_answer_setting(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingPreview):
        return _wrong_step(state, "back_to_answer_setting")
    return moved(ProofreadingAnswerSetting(sentences=state.sentences))


def back_to_proofreading_input(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """answerSetting or saved → input (admins only author)."""
    if not isinstance(state, (ProofreadingAnswerSetting, ProofreadingSaved)):
        return _wrong_step(state, "back_to_proofreading_input")
    if not session.is_admin:
        return ignored(state, "proofreading authoring is admin only")
    return moved(ProofreadingInput())


def view_saved_proofreading(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, (ProofreadingInput, ProofreadingAnswerSetting,
                              ProofreadingPreview, ProofreadingPracticeStep)):
        return _wrong_step(state, "view_saved_proofreading")
    if not session.is_admin:
        return ignored(state, "saved proofreading list is admin only")
    return moved(ProofreadingSaved())


def save_proofreading(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """After the data layer stored the practice, show the saved list."""
    if not isinstance(state, (ProofreadingPreview, ProofreadingPracticeStep)):
        return _wrong_step(state, "save_proofreading")
    if not session.is_admin:
        return ignored(state, "saving proofreading practices is admin only")
    return moved(ProofreadingSaved())


def select_proofreading_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """saved → preview for admins, straight to practice for everyone else."""
    if not isinstance(state, ProofreadingSaved):
        return _wrong_step(state, "select_proofreading_practice")

    practice = ProofreadingPractice.coerce(payload["practice"])
    if not practice.sentences:
        raise ValueError("proofreading practice has no sentences")
    if session.is_admin:
        return moved(ProofreadingPreview(sentences=practice.sentences, answers=practice.answers))
    return moved(ProofreadingPracticeStep(sentences=practice.sentences, answers=practice.answers))


def assign_proofreading_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingSaved):
        return _wrong_step(state, "assign_proofreading_practice")
    if not session.is_admin:
        return ignored(state, "assigning practices is admin only")
    return moved(ProofreadingAssignmentStep(practice=ProofreadingPractice.coerce(payload["practice"])))


def back_to_saved_proofreading(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, ProofreadingAssignmentStep):
        return _wrong_step(state, "back_to_saved_proofreading")
    return moved(ProofreadingSaved())


# ═══════════════════════════════════════════════════════════════════════════
# Spelling
# ═══════════════════════════════════════════════════════════════════════════

def submit_spelling_words(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """input → preview. Takes a ``words`` list or raw ``text``; repeats are dropped."""
    if not isinstance(state, SpellingInput):
        return _wrong_step(state, "submit_spelling_words")
    if "text" in payload:
        words = tuple(parse_spelling_words(_text(payload, "text")))
    else:
        words = tuple(dedupe_words(_string_list(payload, "words")))
    if not words:
        raise ValueError("no spelling words given")
    return moved(SpellingPreview(
        title=_text(payload, "title").strip(),
        words=words,
        practice_id=payload.get("practice_id"),
    ))


def spelling_preview_next(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, SpellingPreview):
        return _wrong_step(state, "spelling_preview_next")
    return moved(SpellingPracticeStep(
        title=state.title,
        words=state.words,
        practice_id=state.practice_id,
    ))


def back_to_spelling_input(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """preview or saved → input for admins. Students have no input step."""
    if not isinstance(state, (SpellingPreview, SpellingSaved)):
        return _wrong_step(state, "back_to_spelling_input")
    if not session.is_admin:
        return ignored(state, "spelling authoring is admin only")
    return moved(SpellingInput())


def view_saved_spelling(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, (SpellingInput, SpellingPreview)):
        return _wrong_step(state, "view_saved_spelling")
    return moved(SpellingSaved())


def back_from_spelling_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """Admins return to the preview; students to their saved list."""
    if not isinstance(state, SpellingPracticeStep):
        return _wrong_step(state, "back_from_spelling_practice")
    if session.is_admin:
        return moved(SpellingPreview(title=state.title, words=state.words, practice_id=state.practice_id))
    return moved(SpellingSaved())


def select_spelling_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    """saved → preview for admins, straight to practice for everyone else."""
    if not isinstance(state, SpellingSaved):
        return _wrong_step(state, "select_spelling_practice")

    practice = SpellingPractice.coerce(payload["practice"])
    if not practice.words:
        raise ValueError("spelling practice has no words")
    if session.is_admin:
        return moved(SpellingPreview(title=practice.title, words=practice.words, practice_id=practice.id))
    return moved(SpellingPracticeStep(
        title=practice.title,
        words=practice.words,
        practice_id=practice.id,
        assignment_id=practice.assignment_id,
    ))


def start_spelling_practice(state: ViewState, payload: Payload, session: SessionContext) -> TransitionResult:
    if not isinstance(state, SpellingSaved):
        return _wrong_step(state, "start_spelling_practice")

    practice = SpellingPractice.coerce(payload["practice"])
    if not practice.words:
        raise ValueError("spelling practice has no words")
    return moved(SpellingPracticeStep(
        title=practice.title,
        words=practice.words,
        practice_id=practice.id,
        assignment_id=practice.assignment_id,
    ))
