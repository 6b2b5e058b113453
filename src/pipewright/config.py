# config.py
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .stringutil import random_string

# Environment defaults; command line flags take precedence.
ENV_CLIENT = "PIPEWRIGHT_CLIENT"
ENV_STATE = "PIPEWRIGHT_STATE"
ENV_TIMEOUT = "PIPEWRIGHT_TIMEOUT"
ENV_BUILD_ID = "PIPEWRIGHT_BUILD_ID"

DEFAULT_CLIENT = "local"
DEFAULT_TIMEOUT = 3600.0


def default_state_url(build_id: str) -> str:
    return (Path(tempfile.gettempdir()) / "pipewright" / build_id).as_uri()


class RunConfig(BaseModel):
    """Everything a run needs to know that is not part of the pipeline itself."""

    client: str = DEFAULT_CLIENT
    build_id: str = Field(default_factory=lambda: random_string(12))
    state: Optional[str] = None
    args: Dict[str, str] = Field(default_factory=dict)
    step: Optional[int] = None
    pipelines: List[str] = Field(default_factory=list)
    event: Optional[str] = None
    can_stdin_prompt: bool = True
    timeout: float = DEFAULT_TIMEOUT
    path: str = "."
    version: str = "latest"
    debug: bool = False

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @model_validator(mode="after")
    def _state_and_selection(self) -> "RunConfig":
        if self.step is not None and self.pipelines:
            raise ValueError("--step and --pipeline can not be combined")
        if self.state is None:
            self.state = default_state_url(self.build_id)
        return self

    @classmethod
    def from_env(cls, **overrides) -> "RunConfig":
        """Build a config from PIPEWRIGHT_* variables, then apply overrides that are not None."""
        values: dict = {}
        if ENV_CLIENT in os.environ:
            values["client"] = os.environ[ENV_CLIENT]
        if ENV_STATE in os.environ:
            values["state"] = os.environ[ENV_STATE]
        if ENV_TIMEOUT in os.environ:
            values["timeout"] = float(os.environ[ENV_TIMEOUT])
        if ENV_BUILD_ID in os.environ:
            values["build_id"] = os.environ[ENV_BUILD_ID]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
