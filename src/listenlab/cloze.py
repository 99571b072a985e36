"""
Cloze (fill-in-the-blank) generation and grading.

Words are whitespace tokens; punctuation stays attached to its word, so a
hidden "Hello," is graded against the learner's "hello" after normalization.
Which words are hidden is an independent random draw per word at the
difficulty's probability, re-rolled every time the difficulty changes.
"""

import re
from enum import Enum

import numpy as np

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")


class Difficulty(str, Enum):
    """Quiz difficulty, controlling the per-word hide probability."""

    EASY = "easy"  # hide 20%
    MEDIUM = "medium"  # hide 40%
    HARD = "hard"  # hide 60%


HIDE_PROBABILITY = {
    Difficulty.EASY: 0.2,
    Difficulty.MEDIUM: 0.4,
    Difficulty.HARD: 0.6,
}


class BlankStatus(str, Enum):
    EMPTY = "empty"
    WRONG = "wrong"
    CORRECT = "correct"


def split_words(text: str) -> list[str]:
    return text.split()


def hide_probability(difficulty: Difficulty | None) -> float:
    """Probability of hiding a word; study mode (None) hides nothing."""
    if difficulty is None:
        return 0.0
    return HIDE_PROBABILITY[Difficulty(difficulty)]


def choose_hidden(
    words: list[str],
    difficulty: Difficulty | None,
    rng: np.random.Generator | None = None,
) -> frozenset[int]:
    """
    Pick the word positions to blank out.

    Each word is drawn independently. Words of length <= 1 are never hidden
    regardless of the draw.

    Args:
        words: Tokens from split_words()
        difficulty: Quiz difficulty, or None for study mode
        rng: Random source; pass a seeded generator for reproducible draws

    Returns:
        Set of hidden word positions
    """
    probability = hide_probability(difficulty)
    if probability <= 0.0 or not words:
        return frozenset()
    if rng is None:
        rng = np.random.default_rng()
    draws = rng.random(len(words))
    return frozenset(
        i for i, (word, draw) in enumerate(zip(words, draws)) if draw < probability and len(word) > 1
    )


def normalize(word: str) -> str:
    return _PUNCTUATION.sub("", word.strip().lower())


def grade(word: str, typed: str | None) -> BlankStatus:
    """Grade the learner's input for one blank against the true word."""
    if normalize(word) == normalize(typed or ""):
        return BlankStatus.CORRECT
    if typed:
        return BlankStatus.WRONG
    return BlankStatus.EMPTY
