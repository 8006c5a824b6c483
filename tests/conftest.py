"""Shared fixtures for the health check tests.

Nothing here talks to a cluster or to Azure; inventories are built directly
from the typed models.
"""

import pytest

from akshealth.rules import build_default_registry
from akshealth.engine.evaluation_engine import EvaluationEngine
from tests.factories import FakeVerifier, make_configuration


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def engine(verifier) -> EvaluationEngine:
    return EvaluationEngine(build_default_registry(verifier))


@pytest.fixture
def configuration():
    return make_configuration()
