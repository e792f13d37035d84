"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import importlib
from datetime import date, datetime, timezone
from typing import Any, Dict
from uuid import uuid4

import pytest

from rhythm.core.config import Settings
from rhythm.observability import client as client_module
from rhythm.observability import tracing
from rhythm.planner.blocks import Block, PreferredConstraint
from rhythm.services.repositories.memory import InMemoryRhythmRepository
from rhythm.services.rhythm_service import RhythmService, build_rhythm_planner


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any] | None = None):
        self.name = name
        self.metadata = metadata or {}
        self.updates: list[Dict[str, Any]] = []
        self.ended = False

    def update(self, **kwargs) -> None:
        self.updates.append(kwargs)

    def end(self) -> None:
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata)
        self.traces.append(trace)
        return trace


@pytest.fixture()
def fresh_client(monkeypatch):
    client_module.reset_opik_client()
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    yield client_module
    client_module.reset_opik_client()


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import rhythm.core.config as core_config
    import rhythm.observability.client as reloaded_client
    import rhythm.main as main_module

    importlib.reload(core_config)
    importlib.reload(reloaded_client)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")


def test_init_opik_requires_api_key(monkeypatch, fresh_client) -> None:
    monkeypatch.setattr(fresh_client.settings, "opik_enabled", True)
    monkeypatch.setattr(fresh_client.settings, "opik_api_key", None)

    assert fresh_client.init_opik() is None


def test_init_opik_builds_client_once(monkeypatch, fresh_client) -> None:
    monkeypatch.setattr(fresh_client.settings, "opik_enabled", True)
    monkeypatch.setattr(fresh_client.settings, "opik_api_key", "test-key")
    monkeypatch.setattr(fresh_client.settings, "opik_project", "rhythm-tests")

    created = fresh_client.init_opik()

    assert isinstance(created, _DummyOpik)
    assert created.kwargs == {"project_name": "rhythm-tests", "api_key": "test-key"}
    assert fresh_client.get_opik_client() is created


def test_trace_attaches_error_and_reraises(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with pytest.raises(RuntimeError):
        with tracing.trace("rhythm.plan", metadata={"blocks": 3, "skipped": None}, user_id="u-1"):
            raise RuntimeError("boom")

    recorded = dummy.traces[0]
    assert recorded.metadata == {"blocks": 3, "user_id": "u-1"}
    assert recorded.updates == [{"error_info": {"exception_type": "RuntimeError", "message": "boom"}}]
    assert recorded.ended is True


def test_plan_trace_reports_outcome(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)
    cfg = Settings(ga_population_size=6, ga_generations=3, ga_random_seed=2, planner_timezone="UTC")
    service = RhythmService(build_rhythm_planner(cfg, day=date(2024, 3, 4)), InMemoryRhythmRepository())
    walk = Block(
        label="Walk",
        category="exercise",
        intensity="low",
        energy_impact="recharging",
        priority="optional",
        constraints=[PreferredConstraint(time=datetime(2024, 3, 4, 15, tzinfo=timezone.utc))],
        duration_minutes=30,
    )

    result = service.plan_rhythm(uuid4(), [walk], request_id="req-9")

    assert result.is_success
    plan_trace = next(trace for trace in dummy.traces if trace.name == "rhythm.plan")
    assert plan_trace.metadata["request_id"] == "req-9"
    assert plan_trace.updates[0]["output"]["success"] is True
    assert plan_trace.updates[0]["output"]["blocks"] == 1
    assert {trace.name for trace in dummy.traces} >= {
        "metric:rhythm.plan.success",
        "metric:rhythm.plan.latency_ms",
        "metric:rhythm.plan.block_count",
    }
