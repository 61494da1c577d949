"""Canonical score from an evaluator snapshot."""
import math
import re
from dataclasses import dataclass, field
from typing import Any

# Tried in order; first match wins
_SCORE_PATTERNS = (
    re.compile(r"Final Score:\s*(\d+(?:\.\d+)?)", re.IGNORECASE),  # "Final Score: 7.5/10"
    re.compile(r"(\d+(?:\.\d+)?)\s*/\s*10"),  # "7.5/10"
    re.compile(r"(\d+(?:\.\d+)?)\s*%"),  # "85%"
    re.compile(r"(\d+(?:\.\d+)?)"),  # "85"
)

# Never surfaced to callers or stored with the attempt
_STRIPPED_FIELDS = ("transcript", "transcript_content", "quiz_results")

# Scores are out of 10 or percentages; anything outside this is garbage
MAX_SCORE = 100


@dataclass(frozen=True)
class Extraction:
    score: float | None
    evaluation: dict[str, Any] = field(default_factory=dict)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_score_text(text: str) -> float | None:
    """Pull a number out of free-text scores like "Final Score: 7.5/10" or "85%"."""
    for pattern in _SCORE_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1))
    return None


def usable_score(value) -> float | None:
    """The value as a score, or None if it is not a finite number in 0..MAX_SCORE."""
    if not _is_number(value):
        return None
    # range first: huge ints overflow in isfinite
    if not 0 <= value <= MAX_SCORE or not math.isfinite(value):
        return None
    return value


def _numeric_final_score(value) -> float | None:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    return usable_score(value)


def score_from_evaluation(evaluation: dict[str, Any]) -> float | None:
    final_score = _numeric_final_score(evaluation.get("final_score"))
    if final_score is not None:
        return final_score

    overall = evaluation.get("overall_score")
    if isinstance(overall, str):
        return usable_score(parse_score_text(overall))
    return usable_score(overall)


def extract(snapshot) -> Extraction:
    """Score and cleaned evaluation map.

    ``snapshot`` is an EvaluationSnapshot; a bare evaluation dict is also
    accepted and gets no session metadata.
    """
    if isinstance(snapshot, dict):
        evaluation = dict(snapshot)
        metadata = {}
    else:
        evaluation = dict(snapshot.raw_evaluation or {})
        metadata = {
            "duration": snapshot.duration_seconds or 0,
            "completed_at": snapshot.completed_at,
            "created_at": snapshot.created_at,
            "status": snapshot.status,
        }

    score = score_from_evaluation(evaluation)
    for name in _STRIPPED_FIELDS:
        evaluation.pop(name, None)
    evaluation.update(metadata)
    return Extraction(score=score, evaluation=evaluation)
