"""
IQ Score Calculation Module.

This module converts quiz performance into an IQ estimate and a percentile
rank. The architecture is pluggable: the active strategy can be swapped with
`set_scoring_strategy` without touching callers of `score()`.

Current Implementation
======================
**Scoring Algorithm:** IQBandScoring
- Step table over the percentage of correct answers, 14 bands from IQ 75
  (below 8% correct) to IQ 145 (96% correct or better)
- Band comparison uses integer arithmetic so results never depend on float
  rounding of ``correct / total``
- Deterministic: identical inputs always produce identical outputs

**Percentile Calculation:**
- z = (IQ - 100) / 15
- Phi(z) approximated in closed form:
  0.5 * (1 + sign(z) * sqrt(1 - exp(-2 z^2 / pi)))
- percentile = round(Phi(z) * 100), clamped to [1, 99]
- The open bottom band reports the floor percentile

Report Breakdowns
=================
The results view shows a category breakdown, a difficulty breakdown, the
strongest and weakest category and simple answer statistics. These are
computed from the recorded answers and the question bank by the helpers at
the bottom of this module.
"""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, Tuple

if TYPE_CHECKING:
    from app.core.answer_evaluation import Answer
    from app.core.question_bank import QuestionBank

logger = logging.getLogger(__name__)

IQ_MEAN = 100.0
IQ_SD = 15.0

PERCENTILE_FLOOR = 1
PERCENTILE_CEILING = 99

# (minimum percent correct, IQ), highest band first
IQ_BANDS: Tuple[Tuple[int, int], ...] = (
    (96, 145),
    (92, 140),
    (88, 135),
    (84, 130),
    (80, 125),
    (72, 120),
    (64, 115),
    (58, 110),
    (52, 105),
    (40, 100),
    (28, 95),
    (16, 90),
    (8, 85),
)
BOTTOM_BAND_IQ = 75

IQ_VALUES = frozenset(iq for _, iq in IQ_BANDS) | {BOTTOM_BAND_IQ}


@dataclass(frozen=True)
class ScoreResult:
    """Result of IQ score calculation."""

    iq: int
    percentile: int


def approximate_normal_cdf(z: float) -> float:
    """
    Closed-form approximation of the standard normal CDF.

    Uses Phi(z) ~= 0.5 * (1 + sign(z) * sqrt(1 - exp(-2 z^2 / pi))), which
    stays within about 0.004 of the exact value.

    Args:
        z: Standard score

    Returns:
        Approximate probability that a standard normal variable is below z

    Example:
        >>> approximate_normal_cdf(0.0)
        0.5
    """
    if z == 0:
        return 0.5
    sign = 1.0 if z > 0 else -1.0
    return 0.5 * (1.0 + sign * math.sqrt(1.0 - math.exp(-2.0 * z * z / math.pi)))


def iq_to_percentile(iq_score: int, mean: float = IQ_MEAN, sd: float = IQ_SD) -> int:
    """
    Convert IQ score to a percentile rank.

    The percentile rank represents what percentage of the population
    scores below the given IQ score, rounded to a whole number and clamped
    to [1, 99].

    Args:
        iq_score: The IQ score to convert
        mean: Mean of IQ distribution (default: 100)
        sd: Standard deviation of IQ distribution (default: 15)

    Returns:
        Percentile rank (1-99)

    Example:
        >>> iq_to_percentile(100)
        50
        >>> iq_to_percentile(115)
        84
        >>> iq_to_percentile(145)
        99  # 100 before clamping
    """
    z_score = (iq_score - mean) / sd
    percentile = round(approximate_normal_cdf(z_score) * 100)
    return max(PERCENTILE_FLOOR, min(PERCENTILE_CEILING, percentile))


def get_percentile_interpretation(percentile: int) -> str:
    """
    Get human-readable interpretation of percentile rank.

    Example:
        >>> get_percentile_interpretation(84)
        "Higher than 84% of test takers"
    """
    return f"Higher than {percentile}% of test takers"


def get_iq_classification(iq_score: int) -> str:
    """Map an IQ score to its descriptive classification."""
    if iq_score >= 130:
        return "Very Superior"
    if iq_score >= 120:
        return "Superior"
    if iq_score >= 110:
        return "High Average"
    if iq_score >= 90:
        return "Average"
    if iq_score >= 80:
        return "Low Average"
    return "Below Average"


def _validate_counts(correct_count: int, total: int) -> None:
    if total <= 0:
        raise ValueError(f"total must be positive, got {total}")
    if correct_count < 0:
        raise ValueError(f"correct_count cannot be negative, got {correct_count}")
    if correct_count > total:
        raise ValueError(
            f"correct_count ({correct_count}) cannot exceed total ({total})"
        )


class ScoringStrategy(Protocol):
    """
    Protocol for IQ scoring strategies.

    This allows different scoring algorithms to be swapped in easily.
    """

    def calculate_score(self, correct_count: int, total: int) -> ScoreResult:
        """
        Calculate the score for a completed quiz.

        Args:
            correct_count: Number of questions answered correctly
            total: Total number of questions in the quiz

        Returns:
            ScoreResult with the IQ estimate and percentile
        """
        ...


class IQBandScoring:
    """
    Step-table scoring over the percentage of correct answers.

    Each band maps a minimum percentage to a fixed IQ. Percentile ranks come
    from the normal approximation, except the open bottom band which reports
    the floor percentile.
    """

    def __init__(
        self,
        bands: Sequence[Tuple[int, int]] = IQ_BANDS,
        bottom_iq: int = BOTTOM_BAND_IQ,
    ):
        self.bands = tuple(bands)
        self.bottom_iq = bottom_iq

    def band_iq(self, correct_count: int, total: int) -> Optional[int]:
        """Return the IQ of the band the counts fall in, None for the bottom band."""
        for threshold_percent, iq in self.bands:
            if correct_count * 100 >= threshold_percent * total:
                return iq
        return None

    def calculate_score(self, correct_count: int, total: int) -> ScoreResult:
        _validate_counts(correct_count, total)

        iq = self.band_iq(correct_count, total)
        if iq is None:
            return ScoreResult(iq=self.bottom_iq, percentile=PERCENTILE_FLOOR)

        return ScoreResult(iq=iq, percentile=iq_to_percentile(iq))


# Default scoring strategy
_scoring_strategy: ScoringStrategy = IQBandScoring()


def set_scoring_strategy(strategy: ScoringStrategy) -> None:
    """
    Change the active scoring strategy.

    Args:
        strategy: New scoring strategy to use
    """
    global _scoring_strategy
    _scoring_strategy = strategy
    logger.info(f"Scoring strategy set to {type(strategy).__name__}")


def get_scoring_strategy() -> ScoringStrategy:
    return _scoring_strategy


def score(correct_count: int, total: int) -> ScoreResult:
    """
    Score a completed quiz using the active strategy.

    Args:
        correct_count: Number of correct answers (0 <= correct_count <= total)
        total: Number of questions in the quiz (> 0)

    Returns:
        ScoreResult with the IQ estimate and percentile

    Raises:
        ValueError: If the counts are impossible

    Example:
        >>> score(10, 20)
        ScoreResult(iq=100, percentile=50)
        >>> score(24, 25)
        ScoreResult(iq=145, percentile=99)
        >>> score(0, 25)
        ScoreResult(iq=75, percentile=1)
    """
    return _scoring_strategy.calculate_score(correct_count, total)


def _breakdown(
    bank: "QuestionBank",
    answers: Sequence["Answer"],
    key: Any,
) -> Dict[Any, Dict[str, Any]]:
    stats: Dict[Any, Dict[str, int]] = {}

    for answer in answers:
        question = bank.get_by_id(answer.question_id)
        if question is None:
            logger.warning(
                f"Answer references unknown question {answer.question_id}; "
                "skipping it in the breakdown"
            )
            continue

        bucket = stats.setdefault(key(question), {"correct": 0, "total": 0})
        bucket["total"] += 1
        if answer.correct:
            bucket["correct"] += 1

    result: Dict[Any, Dict[str, Any]] = {}
    for bucket_key, counts in stats.items():
        total = counts["total"]
        pct = round(counts["correct"] / total * 100, 1) if total > 0 else None
        result[bucket_key] = {
            "correct": counts["correct"],
            "total": total,
            "pct": pct,
        }
    return result


def calculate_domain_scores(
    bank: "QuestionBank", answers: Sequence["Answer"]
) -> Dict[str, Dict[str, Any]]:
    """
    Calculate per-category performance breakdown for a quiz attempt.

    Only categories that appear in the answers are reported. Timed-out
    answers count toward the category total as incorrect.

    Args:
        bank: Question bank the answers refer to
        answers: Recorded answers in quiz order

    Returns:
        Dictionary mapping category name to its scores:
        {
            "pattern": {"correct": 3, "total": 5, "pct": 60.0},
            "logic": {"correct": 2, "total": 6, "pct": 33.3},
            ...
        }
    """
    return _breakdown(bank, answers, lambda q: q.type.value)


def calculate_difficulty_scores(
    bank: "QuestionBank", answers: Sequence["Answer"]
) -> Dict[int, Dict[str, Any]]:
    """Same breakdown as `calculate_domain_scores`, keyed by difficulty level 1-5."""
    scores = _breakdown(bank, answers, lambda q: q.difficulty)
    return dict(sorted(scores.items()))


def get_strongest_weakest_domains(
    domain_scores: Dict[str, Dict[str, Any]],
) -> Dict[str, Optional[str]]:
    """
    Identify the strongest and weakest categories from a domain breakdown.

    Categories without a percentage are ignored. Ties go to the category
    that appears first in the breakdown.

    Args:
        domain_scores: Output of `calculate_domain_scores`

    Returns:
        {"strongest_domain": "pattern", "weakest_domain": "math"}, with None
        values when no category has a percentage.
    """
    scored: List[Tuple[str, float]] = [
        (domain, data["pct"])
        for domain, data in domain_scores.items()
        if data.get("pct") is not None
    ]

    if not scored:
        return {"strongest_domain": None, "weakest_domain": None}

    strongest = scored[0]
    weakest = scored[0]
    for domain, pct in scored[1:]:
        if pct > strongest[1]:
            strongest = (domain, pct)
        if pct < weakest[1]:
            weakest = (domain, pct)

    return {"strongest_domain": strongest[0], "weakest_domain": weakest[0]}


def calculate_answer_statistics(answers: Sequence["Answer"]) -> Dict[str, Any]:
    """
    Summary statistics shown alongside the score.

    Returns:
        {
            "total": 25,              # answers recorded
            "answered": 23,           # excluding timeouts
            "correct": 17,
            "timed_out": 2,
            "accuracy_pct": 68.0,     # correct / total
            "average_time_spent": 21.4,
        }
    """
    total = len(answers)
    correct = sum(1 for a in answers if a.correct)
    timed_out = sum(1 for a in answers if a.timed_out)

    if total == 0:
        return {
            "total": 0,
            "answered": 0,
            "correct": 0,
            "timed_out": 0,
            "accuracy_pct": None,
            "average_time_spent": None,
        }

    return {
        "total": total,
        "answered": total - timed_out,
        "correct": correct,
        "timed_out": timed_out,
        "accuracy_pct": round(correct / total * 100, 1),
        "average_time_spent": round(sum(a.time_spent for a in answers) / total, 1),
    }
