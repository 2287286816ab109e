"""
Tests for recall.state: view-state variants, serialization and sessions.
"""

import json

import pytest

from recall.state.session import SIGNED_OUT, Capability, Role, SessionContext, UserSession
from recall.state.view import (
    VARIANTS, AssignedProofreading, MemorizationSnapshot, NewInput, NewMemorization,
    NewSelection, Page, ProofreadingAnswer, ProofreadingAssignedPractice,
    ProofreadingPreview, PublicPracticeView, SavedView, SpellingPracticeStep,
    Step, Word, initial_state, state_from_dict, state_to_dict,
)


# ─── Variants ────────────────────────────────────────────────────────────────

class TestVariants:
    def test_initial_state_is_new_input(self):
        state = initial_state()
        assert isinstance(state, NewInput)
        assert state.key == (Page.NEW, Step.INPUT)
        assert state.text is None

    def test_step_belongs_to_its_page(self):
        for key, cls in VARIANTS.items():
            if isinstance(key, tuple):
                assert cls.page.value == key[0]
                assert cls.step.value == key[1]
            else:
                assert cls.page.value == key
                assert cls.step is None

    def test_every_page_has_a_variant(self):
        pages = {cls.page for cls in VARIANTS.values()}
        assert pages == set(Page)

    def test_selection_requires_text(self):
        with pytest.raises(TypeError):
            NewSelection()

    def test_states_are_immutable(self):
        state = NewInput(text="abc")
        with pytest.raises(Exception):
            state.text = "changed"

    def test_equal_states_compare_equal(self):
        assert SavedView() == SavedView()
        assert NewInput(text="a") != NewInput(text="b")


# ─── Serialization ───────────────────────────────────────────────────────────

class TestSerialization:
    def test_simple_page_has_no_step(self):
        assert state_to_dict(SavedView()) == {"page": "saved"}

    def test_empty_payload_fields_are_omitted(self):
        assert state_to_dict(NewInput()) == {"page": "new", "step": "input"}

    def test_memorization_step_round_trip(self):
        words = (Word("Hello", 0), Word(",", 1, is_punctuation=True), Word("world", 2, is_memorized=True))
        state = NewMemorization(text="Hello, world", words=words, selected_indices=(2,))
        assert state_from_dict(state_to_dict(state)) == state

    def test_public_practice_round_trip(self):
        snapshot = MemorizationSnapshot(
            original_text="One two",
            words=(Word("One", 0), Word("two", 1, is_memorized=True)),
            selected_word_indices=(1,),
            hidden_words=frozenset({1}),
            title="Poem",
        )
        state = PublicPracticeView(memorization=snapshot)
        data = state_to_dict(state)
        assert data["page"] == "publicPractice"
        assert data["memorization"]["hidden_words"] == [1]
        assert state_from_dict(data) == state

    def test_assigned_proofreading_round_trip(self):
        assignment = AssignedProofreading(
            id="a1", practice_id="p1", title="Set 1",
            sentences=("He go home.",),
            answers=(ProofreadingAnswer(0, 1, "goes"),),
        )
        state = ProofreadingAssignedPractice(assignment=assignment)
        assert state_from_dict(state_to_dict(state)) == state

    def test_spelling_practice_keeps_ids(self):
        state = SpellingPracticeStep(title="Week 1", words=("cat", "dog"), practice_id="p", assignment_id="a")
        data = state_to_dict(state)
        assert data["practice_id"] == "p"
        assert data["assignment_id"] == "a"
        assert state_from_dict(data) == state

    def test_unknown_page_rejected(self):
        with pytest.raises(ValueError):
            state_from_dict({"page": "nowhere"})

    def test_unknown_step_rejected(self):
        with pytest.raises(ValueError):
            state_from_dict({"page": "spelling", "step": "selection"})

    def test_missing_payload_rejected(self):
        with pytest.raises(ValueError):
            state_from_dict({"page": "proofreading", "step": "preview", "sentences": ["a"]})

    def test_step_on_simple_page_rejected(self):
        with pytest.raises(ValueError):
            state_from_dict({"page": "saved", "step": "input"})

    def test_string_word_list_rejected(self):
        # "because" must not become seven one-letter words
        with pytest.raises(ValueError):
            state_from_dict({"page": "spelling", "step": "preview", "title": "t", "words": "because"})
        with pytest.raises(ValueError):
            state_from_dict({"page": "proofreading", "step": "answerSetting", "sentences": "He go."})

    def test_infinite_index_rejected(self):
        data = json.loads(
            '{"page": "new", "step": "memorization", "text": "a",'
            ' "words": [{"text": "a", "index": 0}], "selected_indices": [Infinity]}'
        )
        with pytest.raises(ValueError):
            state_from_dict(data)

    def test_preview_answers_from_json(self):
        state = state_from_dict({
            "page": "proofreading", "step": "preview",
            "sentences": ["A b c."],
            "answers": [{"line_number": 0, "word_index": 1, "correction": "B"}],
        })
        assert isinstance(state, ProofreadingPreview)
        assert state.answers == (ProofreadingAnswer(0, 1, "B"),)


# ─── Session ─────────────────────────────────────────────────────────────────

class TestSession:
    def test_signed_out(self):
        assert not SIGNED_OUT.authenticated
        assert not SIGNED_OUT.is_admin
        assert not SIGNED_OUT.can_access(Capability.SPELLING)

    def test_admin_holds_every_capability(self):
        admin = UserSession(id="1", role=Role.ADMIN)
        assert all(admin.can_access(c) for c in Capability)

    def test_user_capabilities_follow_flags(self):
        user = UserSession(id="2", can_access_spelling=True)
        assert user.can_access(Capability.SPELLING)
        assert not user.can_access(Capability.PROOFREADING)
        assert not user.can_access(Capability.LEARNING_HUB)

    def test_from_jwt_claims(self):
        user = UserSession.from_claims({"sub": "42", "role": "admin", "username": "t"})
        assert user.id == "42"
        assert user.is_admin

    def test_from_orm_like_object(self):
        class Row:
            id = "7"
            username = "kid"
            role = "user"
            can_access_proofreading = True
            can_access_spelling = False
            can_access_learning_hub = False
            force_password_change = True
            display_name = "Kid"

        user = UserSession.from_claims(Row())
        assert user.id == "7"
        assert user.force_password_change
        assert SessionContext(user=user).can_access(Capability.PROOFREADING)
