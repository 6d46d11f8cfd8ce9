"""Per-case runtime state - kept separate from configuration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from wpmonke.client.models import Credentials
from wpmonke.core.results import WordPressError


class FixtureState(str, Enum):
    NOT_STARTED = "not_started"
    FIXTURES_READY = "fixtures_ready"
    BODY_RUNNING = "body_running"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    SKIPPED = "skipped"
    CLEANED_UP = "cleaned_up"


_TRANSITIONS = {
    FixtureState.NOT_STARTED: {
        FixtureState.FIXTURES_READY,
        FixtureState.SKIPPED,
        FixtureState.ERRORED,
    },
    FixtureState.FIXTURES_READY: {FixtureState.BODY_RUNNING, FixtureState.CLEANED_UP},
    FixtureState.BODY_RUNNING: {
        FixtureState.PASSED,
        FixtureState.FAILED,
        FixtureState.ERRORED,
        FixtureState.SKIPPED,
    },
    FixtureState.PASSED: {FixtureState.CLEANED_UP},
    FixtureState.FAILED: {FixtureState.CLEANED_UP},
    FixtureState.ERRORED: {FixtureState.CLEANED_UP},
    FixtureState.SKIPPED: {FixtureState.CLEANED_UP},
    FixtureState.CLEANED_UP: set(),
}

ENTITY_CONTENT = "content"
ENTITY_PRINCIPAL = "principal"


@dataclass(frozen=True)
class EntityRecord:
    """Something created during a case that cleanup must remove."""

    kind: str
    entity_id: Any
    token: str
    content_type: str = "post"


@dataclass
class TestRunContext:
    """Runtime context for one case.

    Holds the uniqueness token, every tracked entity, and the baseline
    principal (if the suite declares one).
    """

    __test__ = False  # not a pytest class

    token: str
    tracked: List[EntityRecord] = field(default_factory=list)
    baseline_principal_id: Optional[int] = None
    baseline_username: Optional[str] = None
    baseline_email: Optional[str] = None
    acting: Optional[Credentials] = None
    state: FixtureState = FixtureState.NOT_STARTED
    history: List[FixtureState] = field(default_factory=lambda: [FixtureState.NOT_STARTED])
    cleanup_errors: List[WordPressError] = field(default_factory=list)

    def transition(self, new_state: FixtureState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal fixture transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    @property
    def tracked_ids(self) -> List[Any]:
        return [record.entity_id for record in self.tracked]

    def unique(self, prefix: str) -> str:
        """``prefix`` qualified with this case's token."""
        return f"{prefix}_{self.token}"
