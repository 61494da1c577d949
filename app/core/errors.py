"""Domain errors. Routers map the ones that reach callers to HTTP responses."""


class ProgressionError(Exception):
    """Base for errors raised by the progression service."""


class ConfigurationError(ProgressionError):
    """Required configuration is missing; raised while wiring components."""


class SessionNotFound(ProgressionError):
    """The evaluator has no record of the session. Not worth retrying."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found in evaluator")
        self.session_id = session_id


class TransientRemoteError(ProgressionError):
    """Network failure, timeout, 5xx, rate limit or auth hiccup from the evaluator."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LedgerConflict(ProgressionError):
    """Another attempt with the same (teacher, scenario, attempt number) exists."""

    def __init__(self, teacher_id: int, scenario_id: str, attempt_number: int):
        super().__init__(
            f"Attempt {attempt_number} of scenario {scenario_id} "
            f"already recorded for teacher {teacher_id}"
        )
        self.teacher_id = teacher_id
        self.scenario_id = scenario_id
        self.attempt_number = attempt_number


class AccessDenied(ProgressionError):
    """The progression gate refuses the scenario; reason is user-facing."""

    def __init__(self, scenario_id: str, reason: str):
        super().__init__(reason)
        self.scenario_id = scenario_id
        self.reason = reason


class UnknownScenario(ProgressionError):
    def __init__(self, scenario_id: str):
        super().__init__(f"Unknown scenario {scenario_id}")
        self.scenario_id = scenario_id
