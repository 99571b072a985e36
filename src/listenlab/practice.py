"""
Per-sentence practice state for study and quiz modes.

A PracticeSession owns one ClozeState per sentence. Cards are immutable and
are replaced through the reducer functions below, so every mutation is an
explicit (card, event) -> card transition.

Card lifecycle:
    1. Dealt when the transcript arrives: hidden positions drawn for the
       effective difficulty, no inputs, not revealed
    2. Learner types into blanks and toggles reveal (quiz mode only)
    3. Re-dealt for every card whenever the effective difficulty changes
       (switching difficulty in quiz mode, or switching between modes)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np

from listenlab.backends.types import Sentence
from listenlab.cloze import BlankStatus, Difficulty, choose_hidden, grade, split_words


class Mode(str, Enum):
    STUDY = "study"
    QUIZ = "quiz"


@dataclass(frozen=True)
class ClozeState:
    """
    Cloze state of one sentence.

    Attributes:
        hidden: Word positions rendered as blanks
        inputs: Learner-typed text keyed by hidden position
        revealed: True when the learner asked to see the answer and translation
    """

    hidden: frozenset[int] = frozenset()
    inputs: dict[int, str] = field(default_factory=dict)
    revealed: bool = False


def new_card(
    words: list[str],
    difficulty: Difficulty | None,
    rng: np.random.Generator | None = None,
) -> ClozeState:
    return ClozeState(hidden=choose_hidden(words, difficulty, rng))


def with_input(card: ClozeState, position: int, text: str) -> ClozeState:
    if position not in card.hidden:
        raise ValueError(f"Word {position} is not a blank")
    return replace(card, inputs={**card.inputs, position: text})


def toggle_reveal(card: ClozeState) -> ClozeState:
    return replace(card, revealed=not card.revealed)


def format_timestamp(seconds: float) -> str:
    """Format seconds as m:ss."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


class PracticeSession:
    """Practice cards for one transcript."""

    def __init__(
        self,
        sentences: Sequence[Sentence] = (),
        *,
        mode: Mode = Mode.STUDY,
        difficulty: Difficulty = Difficulty.EASY,
        rng: np.random.Generator | None = None,
    ):
        self.sentences = list(sentences)
        self.words = [split_words(s.text) for s in self.sentences]
        self.mode = Mode(mode)
        self.difficulty = Difficulty(difficulty)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.cards = self._deal()

    @property
    def effective_difficulty(self) -> Difficulty | None:
        """Difficulty that drives hiding; None in study mode."""
        return self.difficulty if self.mode == Mode.QUIZ else None

    def _deal(self) -> list[ClozeState]:
        difficulty = self.effective_difficulty
        return [new_card(words, difficulty, self.rng) for words in self.words]

    def set_mode(self, mode: Mode) -> None:
        previous = self.effective_difficulty
        self.mode = Mode(mode)
        if self.effective_difficulty != previous:
            self.cards = self._deal()

    def set_difficulty(self, difficulty: Difficulty) -> None:
        previous = self.effective_difficulty
        self.difficulty = Difficulty(difficulty)
        if self.effective_difficulty != previous:
            self.cards = self._deal()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.sentences):
            raise IndexError(f"No sentence at index {index}")

    def _require_quiz(self) -> None:
        if self.mode != Mode.QUIZ:
            raise ValueError("Cloze actions are only available in quiz mode")

    def type_answer(self, index: int, position: int, text: str) -> BlankStatus:
        self._check_index(index)
        self._require_quiz()
        self.cards[index] = with_input(self.cards[index], position, text)
        return self.blank_status(index, position)

    def toggle_reveal(self, index: int) -> bool:
        self._check_index(index)
        self._require_quiz()
        self.cards[index] = toggle_reveal(self.cards[index])
        return self.cards[index].revealed

    def blank_status(self, index: int, position: int) -> BlankStatus:
        card = self.cards[index]
        return grade(self.words[index][position], card.inputs.get(position))

    def card_view(self, index: int, *, is_playing: bool = False) -> dict:
        """Render one card as plain data for the client."""
        self._check_index(index)
        sentence = self.sentences[index]
        card = self.cards[index]
        quiz = self.effective_difficulty is not None
        show_answer = not quiz or card.revealed

        view = {
            "index": index,
            "label": (
                f"#{index + 1} • {format_timestamp(sentence.start_time)}"
                f" - {format_timestamp(sentence.end_time)}"
            ),
            "start_time": sentence.start_time,
            "end_time": sentence.end_time,
            "is_playing": is_playing,
            "revealed": card.revealed,
            "can_reveal": quiz,
        }

        if show_answer:
            view["text"] = sentence.text
        else:
            tokens = []
            for i, word in enumerate(self.words[index]):
                if i in card.hidden:
                    tokens.append(
                        {
                            "blank": i,
                            "value": card.inputs.get(i, ""),
                            "status": self.blank_status(index, i).value,
                            "width": max(len(word) * 10, 40),
                        }
                    )
                else:
                    tokens.append({"word": word})
            view["tokens"] = tokens

        if sentence.translation:
            view["translation"] = sentence.translation if show_answer else "Translation hidden"
        return view

    def views(self, active_index: int | None = None) -> list[dict]:
        return [
            self.card_view(i, is_playing=i == active_index) for i in range(len(self.sentences))
        ]
