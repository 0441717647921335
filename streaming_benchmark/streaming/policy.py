"""Confirmation policies for streaming hypotheses.

Each inference over the growing audio window yields a fresh hypothesis
(a list of words). A policy looks at the recent hypotheses and decides
how many leading words of the latest one are stable enough to confirm.
Confirmed words are never retracted by the transcriber; everything after
them is shown as unconfirmed and may still change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


def common_prefix_length(hypotheses: Sequence[Sequence[str]]) -> int:
    """Count leading words shared by every hypothesis, ignoring case."""
    if not hypotheses:
        return 0
    shortest = min(len(words) for words in hypotheses)
    for position in range(shortest):
        word = hypotheses[0][position].lower()
        if any(words[position].lower() != word for words in hypotheses[1:]):
            return position
    return shortest


class ConfirmationPolicy(ABC):
    """Decides the stable prefix length of the latest hypothesis.

    ``history_size`` is the number of most recent hypotheses the
    transcriber keeps and passes to stable_word_count().
    """

    name: str = ""
    history_size: int = 1

    @abstractmethod
    def stable_word_count(self, history: Sequence[Sequence[str]]) -> int:
        """Return how many leading words of ``history[-1]`` are stable.

        Args:
            history: Recent hypotheses, oldest first, latest last. At most
                ``history_size`` entries.

        Returns:
            A count between 0 and ``len(history[-1])``.
        """


class LocalAgreementPolicy(ConfirmationPolicy):
    """LocalAgreement-n: confirm the prefix agreed on by the last n hypotheses.

    A word is stable when it sits inside the prefix common to the last
    ``window`` hypotheses, every one of those hypotheses continues past
    it (a hypothesis's final word was heard at the audio edge and may be
    cut off), and it is not among the last ``unconfirmed_word_count``
    words of the latest hypothesis.

    Example with window=3, unconfirmed_word_count=2::

        [hello world]
        [hello world foo]
        [hello world foo bar]   -> 1 stable word ("hello")

    Args:
        window: Number of consecutive hypotheses that must agree (>= 2).
        unconfirmed_word_count: Trailing words of the latest hypothesis
            that are never confirmed.
    """

    name = "local_agreement"

    def __init__(self, window: int = 3, unconfirmed_word_count: int = 2) -> None:
        if window < 2:
            raise ValueError("window must be >= 2")
        if unconfirmed_word_count < 0:
            raise ValueError("unconfirmed_word_count must be >= 0")
        self.window = window
        self.history_size = window
        self.unconfirmed_word_count = unconfirmed_word_count

    def stable_word_count(self, history: Sequence[Sequence[str]]) -> int:
        if len(history) < self.window:
            return 0
        recent = history[-self.window :]
        latest = recent[-1]
        shortest = min(len(words) for words in recent)
        return max(
            0,
            min(
                common_prefix_length(recent),
                shortest - 1,
                len(latest) - self.unconfirmed_word_count,
            ),
        )


class PreviousTranscriptPolicy(ConfirmationPolicy):
    """Confirm the prefix shared with the previous hypothesis.

    Cheaper and faster to confirm than LocalAgreement, at the cost of
    confirming words that only two passes agreed on. The last
    ``unconfirmed_word_count`` words of the latest hypothesis stay
    unconfirmed.
    """

    name = "previous_transcript"
    history_size = 2

    def __init__(self, unconfirmed_word_count: int = 3) -> None:
        if unconfirmed_word_count < 0:
            raise ValueError("unconfirmed_word_count must be >= 0")
        self.unconfirmed_word_count = unconfirmed_word_count

    def stable_word_count(self, history: Sequence[Sequence[str]]) -> int:
        if len(history) < 2:
            return 0
        previous, latest = history[-2], history[-1]
        matching = common_prefix_length([previous, latest])
        return max(0, min(matching, len(latest) - self.unconfirmed_word_count))


CONFIRMATION_POLICIES: dict[str, type[ConfirmationPolicy]] = {
    LocalAgreementPolicy.name: LocalAgreementPolicy,
    PreviousTranscriptPolicy.name: PreviousTranscriptPolicy,
}


def get_confirmation_policy(name: str, **kwargs: object) -> ConfirmationPolicy:
    """Create a confirmation policy by name.

    Raises:
        ValueError: If the name is not registered.
    """
    policy_cls = CONFIRMATION_POLICIES.get(name)
    if not policy_cls:
        available = ", ".join(sorted(CONFIRMATION_POLICIES))
        raise ValueError(f"Unknown confirmation policy: '{name}'. Available: {available}")
    return policy_cls(**kwargs)
