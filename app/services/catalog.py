"""Scenario definitions and the progression chain.

The chain visits scenario "1" twice: once as the intro assessment and once as
the final assessment. Both visits are chain slots pointing at the same
definition, so the two attempts share one attempt counter in the ledger.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ScenarioDefinition:
    id: str
    title: str
    description: str
    difficulty: str
    evaluator_scenario_id: str
    required_attempts: int  # total across every slot of this scenario

    @property
    def embed_url(self) -> str:
        return f"https://app.toughtongueai.com/embed/{self.evaluator_scenario_id}?skipPrecheck=true"


@dataclass(frozen=True)
class PredecessorRequirement:
    scenario_id: str
    completed: int


@dataclass(frozen=True)
class ChainSlot:
    """One position of a scenario in the chain.

    The slot is open when its predecessor requirement is met and the
    scenario's own completed count is below ``closes_at``. ``closes_at=None``
    means the slot never closes on its own.
    """

    position: int
    scenario_id: str
    attempts: int
    predecessor: PredecessorRequirement | None = None
    closes_at: int | None = None


SCENARIOS: tuple[ScenarioDefinition, ...] = (
    ScenarioDefinition(
        id="1",
        title="PTM Assessment: Handling Parent Concerns",
        description=(
            "Navigate a challenging Parent-Teacher Meeting where a parent is concerned about "
            "their child's progress. Practice active listening and evidence-based feedback."
        ),
        difficulty="Intermediate",
        evaluator_scenario_id="693877e7b8892d3f7b91eb31",
        required_attempts=2,  # 1 at the start + 1 final
    ),
    ScenarioDefinition(
        id="4",
        title="Coach: The Perfect Renewal Call",
        description=(
            "Learn the best practices for a renewal call. Focus on value proposition, "
            "celebrating student wins, and closing the renewal effectively."
        ),
        difficulty="Intermediate",
        evaluator_scenario_id="6942c17a25f8fcc9bc250d03",
        required_attempts=2,
    ),
    ScenarioDefinition(
        id="2",
        title="PTM Coach: Framework Mastery",
        description=(
            'Master the structural framework for conducting effective PTMs. Focus on the '
            '"Sandwich Method" of feedback and setting actionable goals.'
        ),
        difficulty="Advanced",
        evaluator_scenario_id="6939d23e07d90d92fea80199",
        required_attempts=2,
    ),
    ScenarioDefinition(
        id="3",
        title="Renewal Roleplay: Hesitant Parent (English Communication)",
        description=(
            "Roleplay a renewal conversation with a parent hesitant due to perceived lack of "
            "improvement in English communication skills. Address objections convincingly."
        ),
        difficulty="Advanced",
        evaluator_scenario_id="693a7c1507d90d92fea80744",
        required_attempts=2,
    ),
)

CHAIN: tuple[ChainSlot, ...] = (
    ChainSlot(position=1, scenario_id="1", attempts=1, closes_at=1),
    ChainSlot(position=2, scenario_id="4", attempts=2, predecessor=PredecessorRequirement("1", 1), closes_at=2),
    ChainSlot(position=3, scenario_id="2", attempts=2, predecessor=PredecessorRequirement("4", 2), closes_at=2),
    ChainSlot(position=4, scenario_id="3", attempts=2, predecessor=PredecessorRequirement("2", 2), closes_at=2),
    # final assessment: reopens "1" once the last link is done
    ChainSlot(position=5, scenario_id="1", attempts=1, predecessor=PredecessorRequirement("3", 2)),
)

_BY_ID = {s.id: s for s in SCENARIOS}


def get_scenario(scenario_id: str) -> ScenarioDefinition | None:
    return _BY_ID.get(scenario_id)


def slots_for(scenario_id: str) -> list[ChainSlot]:
    return [slot for slot in CHAIN if slot.scenario_id == scenario_id]


def scenario_ids() -> list[str]:
    """Scenario ids in catalog (first appearance) order."""
    return [s.id for s in SCENARIOS]
