from __future__ import annotations

import pydantic
import pytest

from pipewright.config import ENV_CLIENT, ENV_TIMEOUT, RunConfig


def test_defaults():
    cfg = RunConfig()
    assert cfg.client == "local"
    assert len(cfg.build_id) == 12
    assert cfg.state.startswith("file://")
    assert cfg.state.endswith(cfg.build_id)
    assert cfg.timeout == 3600


def test_timeout_must_be_positive():
    with pytest.raises(pydantic.ValidationError):
        RunConfig(timeout=0)


def test_step_and_pipelines_are_exclusive():
    with pytest.raises(pydantic.ValidationError):
        RunConfig(step=3, pipelines=["build"])


def test_from_env(monkeypatch):
    monkeypatch.setenv(ENV_CLIENT, "plan")
    monkeypatch.setenv(ENV_TIMEOUT, "30")
    cfg = RunConfig.from_env(timeout=None, build_id="abc")
    assert cfg.client == "plan"
    assert cfg.timeout == 30
    assert cfg.build_id == "abc"

    assert RunConfig.from_env(client="local").client == "local"
