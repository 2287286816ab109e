"""
Tests for recall.content.text tokenization and list parsing.
"""

from recall.content.text import (
    apply_selection, dedupe_words, parse_spelling_words, process_text, selected_word_indices,
    split_proofreading_words, split_sentences,
)


class TestProcessText:
    def test_words_and_punctuation(self):
        words = process_text("Hello, world!")
        assert [w.text for w in words] == ["Hello", ",", "world", "!"]
        assert [w.is_punctuation for w in words] == [False, True, False, True]

    def test_indices_are_sequential(self):
        words = process_text("One two.\n\nThree four.")
        assert [w.index for w in words] == list(range(len(words)))

    def test_paragraph_break_token(self):
        words = process_text("One.\n\n\nTwo.")
        breaks = [w for w in words if w.is_paragraph_break]
        assert len(breaks) == 1
        assert breaks[0].text == "\n"

    def test_single_newline_is_not_a_paragraph(self):
        assert not any(w.is_paragraph_break for w in process_text("One\nTwo"))

    def test_contractions_and_hyphens_stay_whole(self):
        texts = [w.text for w in process_text("don't well-known")]
        assert texts == ["don't", "well-known"]

    def test_empty_text(self):
        assert process_text("   ") == []


class TestSelection:
    def test_apply_and_read_back(self):
        words = apply_selection(process_text("Roses are red."), [0, 2, 3])
        # index 3 is the full stop and cannot be selected
        assert selected_word_indices(words) == [0, 2]

    def test_apply_clears_previous_marks(self):
        words = apply_selection(process_text("a b c"), [0])
        words = apply_selection(words, [2])
        assert selected_word_indices(words) == [2]


class TestSplitting:
    def test_sentences_one_per_line(self):
        assert split_sentences("First line.\n\n  Second line.  \n") == ["First line.", "Second line."]

    def test_proofreading_words(self):
        assert split_proofreading_words("She  go to school.") == ["She", "go", "to", "school."]

    def test_spelling_words_deduplicated(self):
        assert parse_spelling_words("Apple, banana;apple\nCherry\n\n") == ["Apple", "banana", "Cherry"]

    def test_dedupe_keeps_first_spelling(self):
        assert dedupe_words(["  Cat", "dog", "", "CAT", "dog "]) == ["Cat", "dog"]
