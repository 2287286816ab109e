"""
Tests for recall.content.store against an in-memory database.
"""

import pytest

from recall.config import MEMORIZATION_SAVE_LIMIT
from recall.content import store
from recall.errors import ContentNotFound, InvalidContent, PermissionDenied, SaveLimitReached
from recall.state.session import UserSession
from recall.state.view import ProofreadingAnswer


def session_for(user):
    return UserSession.from_claims(user)


# ─── Memorization ────────────────────────────────────────────────────────────

class TestSavedContent:
    def test_create_and_list(self, db, student_user):
        user = session_for(student_user)
        content = store.create_saved_content(db, user, "Poem", "Roses are red", [2, 0, 2])
        assert content.selected_word_indices == [0, 2]
        assert [c.id for c in store.list_saved_contents(db, user.id)] == [content.id]

    def test_save_limit_for_students(self, db, student_user):
        user = session_for(student_user)
        for i in range(MEMORIZATION_SAVE_LIMIT):
            store.create_saved_content(db, user, f"T{i}", "text", [])
        with pytest.raises(SaveLimitReached) as exc:
            store.create_saved_content(db, user, "one more", "text", [])
        assert exc.value.status_code == 403
        assert exc.value.details["limit"] == MEMORIZATION_SAVE_LIMIT

    def test_admins_have_no_limit(self, db, admin_user):
        user = session_for(admin_user)
        for i in range(MEMORIZATION_SAVE_LIMIT + 2):
            store.create_saved_content(db, user, f"T{i}", "text", [])
        assert store.count_saved_contents(db, user.id) == MEMORIZATION_SAVE_LIMIT + 2

    def test_blank_title_rejected(self, db, student_user):
        with pytest.raises(InvalidContent):
            store.create_saved_content(db, session_for(student_user), " ", "text", [])

    def test_other_users_content_hidden(self, db, student_user, admin_user):
        content = store.create_saved_content(db, session_for(admin_user), "Mine", "text", [])
        with pytest.raises(ContentNotFound):
            store.get_saved_content(db, content.id, student_user.id)

    def test_delete(self, db, student_user):
        content = store.create_saved_content(db, session_for(student_user), "T", "text", [])
        store.delete_saved_content(db, content.id, student_user.id)
        assert store.count_saved_contents(db, student_user.id) == 0


class TestPublishing:
    def test_publish_is_idempotent(self, db, student_user):
        content = store.create_saved_content(db, session_for(student_user), "T", "Roses are red", [1])
        first = store.publish_saved_content(db, content.id, student_user.id)
        assert store.publish_saved_content(db, content.id, student_user.id) == first

    def test_fetch_public_snapshot(self, db, student_user):
        content = store.create_saved_content(db, session_for(student_user), "T", "Roses are red", [1])
        public_id = store.publish_saved_content(db, content.id, student_user.id)

        snapshot = store.fetch_public_content(db, public_id)
        assert snapshot.title == "T"
        assert snapshot.selected_word_indices == (1,)
        assert snapshot.words[1].is_memorized

    def test_unpublished_not_public(self, db):
        assert store.fetch_public_content(db, "missing") is None


# ─── Practices ───────────────────────────────────────────────────────────────

class TestPractices:
    def test_students_cannot_author(self, db, student_user):
        with pytest.raises(PermissionDenied):
            store.create_spelling_practice(db, session_for(student_user), "T", ["a"])

    def test_spelling_words_required(self, db, admin_user):
        with pytest.raises(InvalidContent):
            store.create_spelling_practice(db, session_for(admin_user), "T", ["  "])

    def test_answer_key_validated(self, db, admin_user):
        bad = [ProofreadingAnswer(line_number=0, word_index=9, correction="x")]
        with pytest.raises(InvalidContent):
            store.create_proofreading_practice(db, session_for(admin_user), "T", ["She go."], bad)

    def test_spelling_words_deduplicated(self, db, admin_user):
        practice = store.create_spelling_practice(db, session_for(admin_user), "T", ["cat", " Cat", "dog"])
        assert practice.words == ("cat", "dog")

    def test_proofreading_round_trip(self, db, admin_user):
        admin = session_for(admin_user)
        answers = [ProofreadingAnswer(0, 1, "goes")]
        created = store.create_proofreading_practice(db, admin, "Tenses", ["She go home."], answers)
        [listed] = store.list_proofreading_practices(db, admin)
        assert listed == created
        assert listed.answers == tuple(answers)

    def test_student_sees_only_assigned_spelling(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        assigned = store.create_spelling_practice(db, admin, "Week 1", ["cat"])
        store.create_spelling_practice(db, admin, "Week 2", ["dog"])
        [assignment] = store.assign_practice(db, admin, "spelling", assigned.id, [student_user.id])

        [visible] = store.list_spelling_practices(db, session_for(student_user))
        assert visible.id == assigned.id
        assert visible.assignment_id == assignment.id
        assert len(store.list_spelling_practices(db, admin)) == 2

    def test_get_spelling_requires_assignment(self, db, admin_user, student_user):
        admin, student = session_for(admin_user), session_for(student_user)
        practice = store.create_spelling_practice(db, admin, "W", ["cat"])
        with pytest.raises(ContentNotFound):
            store.get_spelling_practice(db, student, practice.id)

        [assignment] = store.assign_practice(db, admin, "spelling", practice.id, [student_user.id])
        assert store.get_spelling_practice(db, student, practice.id).assignment_id == assignment.id


# ─── Assignments ─────────────────────────────────────────────────────────────

class TestAssignments:
    def test_assign_skips_open_duplicates(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        practice = store.create_spelling_practice(db, admin, "W", ["a"])
        assert len(store.assign_practice(db, admin, "spelling", practice.id, [student_user.id])) == 1
        assert store.assign_practice(db, admin, "spelling", practice.id, [student_user.id]) == []

    def test_assign_unknown_user(self, db, admin_user):
        admin = session_for(admin_user)
        practice = store.create_spelling_practice(db, admin, "W", ["a"])
        with pytest.raises(ContentNotFound):
            store.assign_practice(db, admin, "spelling", practice.id, ["nobody"])

    def test_assign_unknown_kind(self, db, admin_user, student_user):
        with pytest.raises(InvalidContent):
            store.assign_practice(db, session_for(admin_user), "poetry", "x", [student_user.id])

    def test_describe_proofreading_assignment(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        practice = store.create_proofreading_practice(db, admin, "P", ["He run."], [])
        store.assign_practice(db, admin, "proofreading", practice.id, [student_user.id])

        [entry] = store.list_assignments_for_user(db, student_user.id, "proofreading")
        assert entry["item"]["practice_id"] == practice.id
        assert entry["item"]["sentences"] == ["He run."]
        assert entry["completed"] is False

    def test_complete_assignment(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        content = store.create_saved_content(db, admin, "Poem", "a b c", [1])
        [assignment] = store.assign_practice(db, admin, "memorization", content.id, [student_user.id])

        done = store.complete_assignment(db, student_user.id, assignment.id)
        assert done.completed
        assert done.completed_at is not None

    def test_cannot_complete_someone_elses(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        content = store.create_saved_content(db, admin, "Poem", "a b c", [])
        [assignment] = store.assign_practice(db, admin, "memorization", content.id, [student_user.id])
        with pytest.raises(ContentNotFound):
            store.complete_assignment(db, admin_user.id, assignment.id)

    def test_deleting_practice_drops_assignments(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        practice = store.create_spelling_practice(db, admin, "W", ["a"])
        store.assign_practice(db, admin, "spelling", practice.id, [student_user.id])
        store.delete_spelling_practice(db, admin, practice.id)
        assert store.list_assignments_for_user(db, student_user.id) == []

    def test_admin_lists_holders_of_a_practice(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        practice = store.create_spelling_practice(db, admin, "W", ["a"])
        [assignment] = store.assign_practice(db, admin, "spelling", practice.id, [student_user.id])
        store.complete_assignment(db, student_user.id, assignment.id)

        [row] = store.list_assignments_for_practice(db, admin, "spelling", practice.id)
        assert row["username"] == "pupil"
        assert row["completed"] is True
        with pytest.raises(PermissionDenied):
            store.list_assignments_for_practice(db, session_for(student_user), "spelling", practice.id)

    def test_unassign(self, db, admin_user, student_user):
        admin = session_for(admin_user)
        practice = store.create_spelling_practice(db, admin, "W", ["a"])
        [assignment] = store.assign_practice(db, admin, "spelling", practice.id, [student_user.id])
        store.delete_assignment(db, admin, assignment.id)
        assert store.list_assignments_for_user(db, student_user.id) == []
        with pytest.raises(ContentNotFound):
            store.delete_assignment(db, admin, assignment.id)
