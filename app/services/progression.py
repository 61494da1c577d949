"""Progression gate: per-scenario state and lock rules derived from attempt history.

Everything here is a pure function of the attempt history of one teacher.
Nothing is cached; callers pass whatever the ledger returned for this request.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from app.models.attempt import AttemptStatus
from app.services import catalog
from app.services.catalog import ChainSlot


class ProgressStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class ScenarioProgress:
    scenario_id: str
    status: ProgressStatus
    completed_attempts: int
    required_attempts: int
    average_score: int | None
    is_locked: bool
    current_attempt_number: int  # highest attempt number recorded, 0 if none


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str = ""


@dataclass(frozen=True)
class ChainStep:
    order: int
    scenario_id: str
    slot_position: int
    attempt_index: int  # 1-based within the slot
    done: bool


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_completed(attempt) -> bool:
    return getattr(attempt, "status", None) == AttemptStatus.COMPLETED


def completed_counts(history: Iterable) -> dict[str, int]:
    """Completed attempts per scenario id."""
    counts: dict[str, int] = {}
    for attempt in history:
        if _is_completed(attempt):
            counts[attempt.scenario_id] = counts.get(attempt.scenario_id, 0) + 1
    return counts


def _slot_open(slot: ChainSlot, counts: dict[str, int]) -> bool:
    if slot.predecessor is not None:
        if counts.get(slot.predecessor.scenario_id, 0) < slot.predecessor.completed:
            return False
    if slot.closes_at is not None and counts.get(slot.scenario_id, 0) >= slot.closes_at:
        return False
    return True


def _locked(scenario_id: str, counts: dict[str, int]) -> bool:
    slots = catalog.slots_for(scenario_id)
    if not slots:
        return True
    return not any(_slot_open(slot, counts) for slot in slots)


def is_locked(scenario_id: str, history: Iterable) -> bool:
    """True when no chain slot of the scenario is currently open.

    Scenario "1" has two slots: the intro closes after its first completion,
    and the final one opens once scenario "3" has two completions.
    """
    return _locked(scenario_id, completed_counts(history))


def can_access(scenario_id: str, history: Iterable) -> AccessDecision:
    """Same rules as is_locked, with a reason the teacher can act on."""
    if catalog.get_scenario(scenario_id) is None:
        return AccessDecision(False, f"Scenario {scenario_id} does not exist")

    counts = completed_counts(history)
    if not _locked(scenario_id, counts):
        return AccessDecision(True)

    own = counts.get(scenario_id, 0)
    # report the first slot that is still reachable: its predecessor is the blocker
    for slot in catalog.slots_for(scenario_id):
        if slot.closes_at is not None and own >= slot.closes_at:
            continue
        pred = slot.predecessor
        done = counts.get(pred.scenario_id, 0)
        if own > 0:
            return AccessDecision(
                False,
                f"Complete scenario {pred.scenario_id} ({done}/{pred.completed} completed) "
                f"before attempting scenario {scenario_id} again",
            )
        return AccessDecision(
            False,
            f"Complete scenario {pred.scenario_id} first ({done}/{pred.completed} completed)",
        )

    return AccessDecision(
        False,
        f"All {own} allowed attempts of scenario {scenario_id} are already completed",
    )


def _progress_for(scenario_id: str, attempts: list, counts: dict[str, int]) -> ScenarioProgress:
    required = catalog.get_scenario(scenario_id).required_attempts
    completed = counts.get(scenario_id, 0)
    if completed >= required:
        status = ProgressStatus.COMPLETED
    elif completed > 0:
        status = ProgressStatus.IN_PROGRESS
    else:
        status = ProgressStatus.NOT_STARTED

    scores = [a.score for a in attempts if a.score is not None]
    average = round_half_up(sum(scores) / len(scores)) if scores else None

    return ScenarioProgress(
        scenario_id=scenario_id,
        status=status,
        completed_attempts=completed,
        required_attempts=required,
        average_score=average,
        is_locked=_locked(scenario_id, counts),
        current_attempt_number=max((a.attempt_number for a in attempts), default=0),
    )


def compute_progress(history: Iterable) -> dict[str, ScenarioProgress]:
    """Progress of every catalog scenario, keyed by id, in catalog order."""
    history = list(history)
    counts = completed_counts(history)
    by_scenario: dict[str, list] = {}
    for attempt in history:
        by_scenario.setdefault(attempt.scenario_id, []).append(attempt)

    return {
        scenario_id: _progress_for(scenario_id, by_scenario.get(scenario_id, []), counts)
        for scenario_id in catalog.scenario_ids()
    }


def scenario_progress(scenario_id: str, history: Iterable) -> ScenarioProgress:
    history = list(history)
    attempts = [a for a in history if a.scenario_id == scenario_id]
    return _progress_for(scenario_id, attempts, completed_counts(history))


def chain_steps(history: Iterable) -> list[ChainStep]:
    """The chain flattened to one step per required attempt (orders 1..8).

    Completions of a scenario fill its slots in chain order, so the second
    completion of "1" marks the final assessment step as done.
    """
    counts = completed_counts(history)
    consumed: dict[str, int] = {}
    steps = []
    order = 0
    for slot in catalog.CHAIN:
        for index in range(1, slot.attempts + 1):
            order += 1
            used = consumed.get(slot.scenario_id, 0) + 1
            consumed[slot.scenario_id] = used
            steps.append(ChainStep(
                order=order,
                scenario_id=slot.scenario_id,
                slot_position=slot.position,
                attempt_index=index,
                done=counts.get(slot.scenario_id, 0) >= used,
            ))
    return steps
