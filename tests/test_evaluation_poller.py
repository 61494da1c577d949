"""Tests for the evaluator client and the bounded polling state machine."""
import asyncio
import json

import httpx
import pytest

from app.core.errors import ConfigurationError, SessionNotFound, TransientRemoteError
from app.services.evaluation import EvaluationClient, PollState, has_evaluation_signal

from fakes import BASE_URL, FakeEvaluator, RecordingSleep, make_poller, session_payload

SCORED = session_payload(evaluation={"final_score": 8, "detailed_feedback": "Clear structure"})
PENDING = session_payload(status="completed", evaluation={})


def resolve(poller, session_id="sess-1"):
    return asyncio.run(poller.resolve(session_id))


class TestEvaluationClient:

    def test_missing_api_key_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            EvaluationClient(api_key="")

    def test_sends_credentials_and_org_header(self):
        fake = FakeEvaluator().script("sess-1", (200, SCORED))
        client = EvaluationClient(api_key="k-1", org_id="org-9", base_url=BASE_URL, transport=fake.transport())

        payload = asyncio.run(client.get_session("sess-1"))

        request = fake.requests[0]
        assert payload["status"] == "completed"
        assert request.url.path == "/api/public/sessions/sess-1"
        assert request.headers["Authorization"] == "Bearer k-1"
        assert request.headers["X-TT-ORG"] == "org-9"

    def test_404_is_session_not_found(self):
        client = EvaluationClient(api_key="k", base_url=BASE_URL, transport=FakeEvaluator().transport())
        with pytest.raises(SessionNotFound):
            asyncio.run(client.get_session("missing"))

    @pytest.mark.parametrize("status_code", [401, 429, 500, 503])
    def test_other_errors_are_transient(self, status_code):
        fake = FakeEvaluator().script("sess-1", (status_code, {"detail": "nope"}))
        client = EvaluationClient(api_key="k", base_url=BASE_URL, transport=fake.transport())
        with pytest.raises(TransientRemoteError) as exc_info:
            asyncio.run(client.get_session("sess-1"))
        assert exc_info.value.status_code == status_code

    def test_network_error_is_transient(self):
        fake = FakeEvaluator().script("sess-1", httpx.ConnectError("connection refused"))
        client = EvaluationClient(api_key="k", base_url=BASE_URL, transport=fake.transport())
        with pytest.raises(TransientRemoteError):
            asyncio.run(client.get_session("sess-1"))

    def test_trigger_posts_session_id(self):
        fake = FakeEvaluator()
        client = EvaluationClient(api_key="k", base_url=BASE_URL, transport=fake.transport())

        asyncio.run(client.trigger_analysis("sess-1"))

        request = fake.triggers[0]
        assert request.url.path == "/api/public/sessions/analyze"
        assert json.loads(request.content) == {"session_id": "sess-1"}


class TestEvaluationSignal:

    def test_zero_score_counts_as_signal(self):
        assert has_evaluation_signal({"overall_score": 0}) is True

    def test_blank_values_do_not_count(self):
        assert has_evaluation_signal({"overall_score": "", "detailed_feedback": "  "}) is False
        assert has_evaluation_signal({"summary": "no score here"}) is False
        assert has_evaluation_signal(None) is False


class TestPoller:

    def test_returns_on_first_fetch_when_scored(self):
        fake = FakeEvaluator().script("sess-1", (200, SCORED))
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep))

        assert snapshot.outcome is PollState.DONE
        assert snapshot.session_confirmed is True
        assert snapshot.fetches == 1
        assert snapshot.raw_evaluation["final_score"] == 8
        assert sleep.calls == []
        assert len(fake.fetches) == 1
        assert fake.triggers == []

    def test_triggers_analysis_at_most_once(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING))
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep, max_attempts=4))

        assert len(fake.triggers) == 1
        assert snapshot.triggered is True

    def test_times_out_within_budget_with_best_effort_snapshot(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING))
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep, max_attempts=3, interval_seconds=30))

        assert snapshot.outcome is PollState.TIMED_OUT
        assert snapshot.session_confirmed is True
        assert snapshot.status == "completed"
        assert sleep.calls == [30, 30]  # no wait after the last attempt
        assert len(fake.fetches) == 4  # 3 attempts + final fetch

    def test_keeps_polling_until_evaluation_lands(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING), (200, PENDING), (200, SCORED))
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep, max_attempts=5))

        assert snapshot.outcome is PollState.DONE
        assert snapshot.fetches == 3
        assert len(sleep.calls) == 2

    def test_not_found_stops_without_sleeping(self):
        fake = FakeEvaluator()
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep, max_attempts=5), "unknown-session")

        assert snapshot.outcome is PollState.NOT_FOUND
        assert snapshot.session_confirmed is False
        assert snapshot.has_data is False
        assert sleep.calls == []
        assert len(fake.fetches) == 1
        assert fake.triggers == []

    def test_not_found_after_transient_errors(self):
        fake = FakeEvaluator().script(
            "sess-1",
            (503, {}),
            (404, {"detail": "gone"}),
        )
        sleep = RecordingSleep()

        snapshot = resolve(make_poller(fake, sleep, max_attempts=5))

        assert snapshot.outcome is PollState.NOT_FOUND
        assert len(sleep.calls) == 1
        assert len(fake.fetches) == 2

    def test_transient_errors_are_retried(self):
        fake = FakeEvaluator().script(
            "sess-1",
            (500, {"detail": "boom"}),
            httpx.ReadTimeout("slow"),
            (200, SCORED),
        )

        snapshot = resolve(make_poller(fake, max_attempts=5))

        assert snapshot.outcome is PollState.DONE
        assert snapshot.fetches == 3

    def test_only_transient_errors_time_out_unconfirmed(self):
        fake = FakeEvaluator().script("sess-1", (502, {}))

        snapshot = resolve(make_poller(fake, max_attempts=3))

        assert snapshot.outcome is PollState.TIMED_OUT
        assert snapshot.session_confirmed is False
        assert snapshot.raw_evaluation is None
        assert len(fake.fetches) == 4

    def test_failed_trigger_is_swallowed(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING), (200, SCORED))
        fake.analyze_status = 500

        snapshot = resolve(make_poller(fake, max_attempts=3))

        assert snapshot.outcome is PollState.DONE
        assert len(fake.triggers) == 1

    def test_no_trigger_while_session_pending(self):
        fake = FakeEvaluator().script("sess-1", (200, session_payload(status="pending", evaluation=None)))

        resolve(make_poller(fake, max_attempts=3))

        assert fake.triggers == []

    def test_trigger_every_round_when_not_limited(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING))

        resolve(make_poller(fake, max_attempts=3, trigger_once=False))

        assert len(fake.triggers) == 3

    def test_final_fetch_can_still_succeed(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING), (200, PENDING), (200, SCORED))

        snapshot = resolve(make_poller(fake, max_attempts=2))

        assert snapshot.outcome is PollState.DONE
        assert snapshot.fetches == 2
        assert len(fake.fetches) == 3

    def test_cancellation_stops_polling(self):
        fake = FakeEvaluator().script("sess-1", (200, PENDING))

        async def cancelled_sleep(seconds):
            raise asyncio.CancelledError()

        poller = make_poller(fake, sleep=cancelled_sleep, max_attempts=5)
        with pytest.raises(asyncio.CancelledError):
            resolve(poller)
        assert len(fake.fetches) == 1
