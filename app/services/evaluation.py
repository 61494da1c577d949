"""Evaluator client and the poller that waits for a session's evaluation.

The evaluator analyses a recorded role-play session asynchronously. Right
after a teacher finishes, the session usually has no evaluation yet, so the
poller fetches it repeatedly, nudges the analysis once, and gives up after a
fixed budget with whatever the evaluator has by then.

Usage:
    poller = EvaluationPoller(EvaluationClient(api_key="..."), PollPolicy())
    snapshot = await poller.resolve(session_id)
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from app.core.config import Settings
from app.core.errors import ConfigurationError, SessionNotFound, TransientRemoteError

logger = logging.getLogger(__name__)

USER_AGENT = "Scenario-Progress-Service/1.0"

# Any of these, non-empty, means the evaluation has landed
SIGNAL_FIELDS = ("overall_score", "final_score", "detailed_feedback")

# Remote statuses worth nudging with a re-analysis request
TRIGGER_STATUSES = ("completed", "active")


class EvaluationClient:
    """Thin async HTTP client for the evaluator's public session API."""

    def __init__(
        self,
        api_key: str,
        org_id: str = "",
        base_url: str = "https://api.toughtongueai.com/api/public",
        timeout_seconds: float = 45.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigurationError("Evaluator API key is not configured (EVALUATOR_API_KEY)")
        self._api_key = api_key
        self._org_id = org_id
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        return cls(
            api_key=settings.evaluator_api_key,
            org_id=settings.evaluator_org_id,
            base_url=settings.evaluator_base_url,
            timeout_seconds=settings.evaluator_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {self._api_key}",
            "X-TT-ORG": self._org_id,
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransientRemoteError(f"{method} {path} failed: {exc}") from exc

    async def get_session(self, session_id: str) -> dict[str, Any]:
        path = f"/sessions/{quote(session_id, safe='')}"
        response = await self._request("GET", path)

        if response.status_code == 404:
            raise SessionNotFound(session_id)
        if response.status_code >= 400:
            raise TransientRemoteError(
                f"GET {path} returned {response.status_code}", status_code=response.status_code
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransientRemoteError(f"GET {path} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise TransientRemoteError(f"GET {path} returned {type(payload).__name__}, expected an object")
        return payload

    async def trigger_analysis(self, session_id: str) -> None:
        response = await self._request("POST", "/sessions/analyze", json={"session_id": session_id})
        if response.status_code >= 400:
            raise TransientRemoteError(
                f"POST /sessions/analyze returned {response.status_code}", status_code=response.status_code
            )


class PollState(str, Enum):
    FETCHING = "FETCHING"
    EVALUATING = "EVALUATING"
    TRIGGERED = "TRIGGERED"
    WAITING = "WAITING"
    DONE = "DONE"
    TIMED_OUT = "TIMED_OUT"
    NOT_FOUND = "NOT_FOUND"


TERMINAL_STATES = frozenset({PollState.DONE, PollState.TIMED_OUT, PollState.NOT_FOUND})


@dataclass(frozen=True)
class EvaluationSnapshot:
    session_id: str
    status: str | None = None
    raw_evaluation: dict[str, Any] | None = None
    transcript: str | None = None
    completed_at: str | None = None
    created_at: str | None = None
    duration_seconds: float | None = None
    # filled in by the poller
    outcome: PollState | None = None
    session_confirmed: bool = False
    fetches: int = 0
    triggered: bool = False

    @classmethod
    def from_payload(cls, session_id: str, payload: dict[str, Any]) -> "EvaluationSnapshot":
        evaluation = payload.get("evaluation_results")
        return cls(
            session_id=session_id,
            status=payload.get("status"),
            raw_evaluation=evaluation if isinstance(evaluation, dict) else {},
            transcript=payload.get("transcript_content"),
            completed_at=payload.get("completed_at"),
            created_at=payload.get("created_at"),
            duration_seconds=payload.get("duration"),
            session_confirmed=True,
        )

    @property
    def has_data(self) -> bool:
        return self.session_confirmed

    @property
    def has_evaluation(self) -> bool:
        return has_evaluation_signal(self.raw_evaluation)


def _present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (dict, list, tuple)):
        return bool(value)
    return True  # numbers, including 0


def has_evaluation_signal(evaluation: dict[str, Any] | None) -> bool:
    if not evaluation:
        return False
    return any(_present(evaluation.get(name)) for name in SIGNAL_FIELDS)


@dataclass(frozen=True)
class PollPolicy:
    max_attempts: int = 15
    interval_seconds: float = 30.0
    trigger_once: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        return cls(
            max_attempts=max(1, settings.poll_max_attempts),
            interval_seconds=settings.poll_interval_seconds,
            trigger_once=settings.poll_trigger_once,
        )


@dataclass
class _PollRun:
    session_id: str
    fetches: int = 0
    triggers: int = 0
    latest: EvaluationSnapshot | None = None
    confirmed: bool = False


Sleep = Callable[[float], Awaitable[Any]]


class EvaluationPoller:
    """Bounded polling for one session's evaluation.

    ``resolve`` never raises for evaluator failures; the outcome is reported
    on the returned snapshot. Cancellation of the calling task propagates
    out of the wait.
    """

    def __init__(self, client: EvaluationClient, policy: PollPolicy | None = None, sleep: Sleep = asyncio.sleep):
        self.client = client
        self.policy = policy or PollPolicy()
        self._sleep = sleep

    async def resolve(self, session_id: str) -> EvaluationSnapshot:
        run = _PollRun(session_id=session_id)
        logger.info(
            "Polling evaluator for session %s (max %d attempts, %.0fs apart)",
            session_id, self.policy.max_attempts, self.policy.interval_seconds,
        )

        state = PollState.FETCHING
        while state not in TERMINAL_STATES:
            state = await self._step(state, run)

        return self._result(state, run)

    async def _step(self, state: PollState, run: _PollRun) -> PollState:
        if state is PollState.FETCHING:
            return await self._fetch(run)
        if state is PollState.EVALUATING:
            return self._evaluate(run)
        if state is PollState.TRIGGERED:
            return await self._trigger(run)
        if state is PollState.WAITING:
            return await self._wait(run)
        raise ValueError(f"No transition out of {state}")

    async def _fetch(self, run: _PollRun) -> PollState:
        run.fetches += 1
        logger.info("Attempt %d/%d: checking session %s", run.fetches, self.policy.max_attempts, run.session_id)
        try:
            payload = await self.client.get_session(run.session_id)
        except SessionNotFound:
            logger.warning("Session %s not found in evaluator; stopping", run.session_id)
            run.confirmed = False
            return PollState.NOT_FOUND
        except TransientRemoteError as exc:
            logger.warning("Attempt %d for session %s failed: %s", run.fetches, run.session_id, exc)
            return PollState.WAITING

        run.latest = EvaluationSnapshot.from_payload(run.session_id, payload)
        run.confirmed = True
        return PollState.EVALUATING

    def _evaluate(self, run: _PollRun) -> PollState:
        snapshot = run.latest
        if snapshot.has_evaluation:
            logger.info("Evaluation for session %s ready on attempt %d", run.session_id, run.fetches)
            return PollState.DONE
        if snapshot.status in TRIGGER_STATUSES and not (self.policy.trigger_once and run.triggers):
            return PollState.TRIGGERED
        logger.info("Session %s status %r, no evaluation yet", run.session_id, snapshot.status)
        return PollState.WAITING

    async def _trigger(self, run: _PollRun) -> PollState:
        run.triggers += 1
        logger.info("Session %s has status %r but no evaluation; requesting analysis", run.session_id, run.latest.status)
        try:
            await self.client.trigger_analysis(run.session_id)
        except TransientRemoteError as exc:
            logger.warning("Analysis trigger for session %s failed, continuing to poll: %s", run.session_id, exc)
        return PollState.WAITING

    async def _wait(self, run: _PollRun) -> PollState:
        if run.fetches >= self.policy.max_attempts:
            return await self._final_fetch(run)
        await self._sleep(self.policy.interval_seconds)
        return PollState.FETCHING

    async def _final_fetch(self, run: _PollRun) -> PollState:
        logger.info("Max attempts reached for session %s, fetching final status", run.session_id)
        try:
            payload = await self.client.get_session(run.session_id)
        except SessionNotFound:
            logger.warning("Session %s not found in evaluator on final fetch", run.session_id)
            run.confirmed = False
            return PollState.NOT_FOUND
        except TransientRemoteError as exc:
            logger.warning("Final fetch for session %s failed: %s", run.session_id, exc)
            return PollState.TIMED_OUT

        run.latest = EvaluationSnapshot.from_payload(run.session_id, payload)
        run.confirmed = True
        if run.latest.has_evaluation:
            logger.info("Evaluation for session %s ready after timeout", run.session_id)
            return PollState.DONE
        logger.warning(
            "No evaluation for session %s after %d attempts; returning available data",
            run.session_id, run.fetches,
        )
        return PollState.TIMED_OUT

    def _result(self, state: PollState, run: _PollRun) -> EvaluationSnapshot:
        base = run.latest if run.latest is not None and run.confirmed else EvaluationSnapshot(session_id=run.session_id)
        return replace(
            base,
            outcome=state,
            session_confirmed=run.confirmed,
            fetches=run.fetches,
            triggered=run.triggers > 0,
        )
