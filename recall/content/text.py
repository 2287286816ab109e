"""
Recall — Text Processing

Turns raw input into what the authoring steps work on:
- memorization text → Word tokens (words, punctuation, paragraph breaks)
- proofreading input → one sentence per line
- spelling input → de-duplicated word list
"""

import re
from typing import Iterable, List

from recall.state.view import Word

# A token is a run of word characters (with inner apostrophes/hyphens) or a
# single non-space, non-word character.
_TOKEN_RE = re.compile(r"\w+(?:['’\-][\w]+)*|[^\w\s]", re.UNICODE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SPELLING_SPLIT_RE = re.compile(r"[\n,;]+")


def _is_punctuation(token: str) -> bool:
    return not any(ch.isalnum() for ch in token)


def process_text(text: str) -> List[Word]:
    """
    Tokenize memorization text. Indices are sequential across the whole
    text, paragraph breaks included, so a selected index is stable.

    >>> [w.text for w in process_text("Hi, you.")]
    ['Hi', ',', 'you', '.']
    """
    words: List[Word] = []
    paragraphs = [p for p in _PARAGRAPH_SPLIT_RE.split(text.strip()) if p.strip()]

    for p_index, paragraph in enumerate(paragraphs):
        if p_index > 0:
            words.append(Word(text="\n", index=len(words), is_paragraph_break=True))
        for token in _TOKEN_RE.findall(paragraph):
            words.append(Word(
                text=token,
                index=len(words),
                is_punctuation=_is_punctuation(token),
            ))
    return words


def selected_word_indices(words: Iterable[Word]) -> List[int]:
    """Indices of words marked for memorization. Punctuation never counts."""
    return [w.index for w in words if w.is_memorized and not w.is_punctuation and not w.is_paragraph_break]


def apply_selection(words: Iterable[Word], indices: Iterable[int]) -> List[Word]:
    """Return a copy of ``words`` with exactly ``indices`` marked."""
    chosen = set(indices)
    result = []
    for w in words:
        selectable = not w.is_punctuation and not w.is_paragraph_break
        result.append(Word(
            text=w.text,
            index=w.index,
            is_memorized=selectable and w.index in chosen,
            is_punctuation=w.is_punctuation,
            highlight_group=w.highlight_group,
            is_paragraph_break=w.is_paragraph_break,
        ))
    return result


def split_sentences(text: str) -> List[str]:
    """Proofreading input: one sentence per non-blank line."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def split_proofreading_words(sentence: str) -> List[str]:
    """Words of one proofreading line. Answer keys index into this list."""
    return sentence.split()


def dedupe_words(raw_words: Iterable[str]) -> List[str]:
    """Strip, drop blanks and case-insensitive repeats; keep first occurrence order."""
    seen = set()
    words = []
    for raw in raw_words:
        word = raw.strip()
        key = word.lower()
        if word and key not in seen:
            seen.add(key)
            words.append(word)
    return words


def parse_spelling_words(text: str) -> List[str]:
    """Split on newlines, commas or semicolons, then de-duplicate."""
    return dedupe_words(_SPELLING_SPLIT_RE.split(text))
