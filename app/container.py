"""Wires long-lived components from settings."""
from __future__ import annotations
from functools import lru_cache

from app.core.config import get_settings
from app.services.evaluation import EvaluationClient, EvaluationPoller, PollPolicy


@lru_cache(maxsize=1)
def get_evaluation_client() -> EvaluationClient:
    # raises ConfigurationError when the evaluator key is missing
    return EvaluationClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_evaluation_poller() -> EvaluationPoller:
    return EvaluationPoller(client=get_evaluation_client(), policy=PollPolicy.from_settings(get_settings()))
