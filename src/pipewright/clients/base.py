# clients/base.py
from __future__ import annotations

from typing import Protocol

from ..context import Context
from ..model import Step
from ..walker import Walker


class Client(Protocol):
    """
    Decides what running a pipeline means: executing actions in-process,
    or producing a description of the work for something else to run.
    """

    def validate(self, step: Step) -> None:
        """Reject a step this client can't handle by raising ValidationError.
        Raise SkipValidation to only warn about it."""
        ...

    def done(self, ctx: Context, walker: Walker) -> None:
        """Called once, after every pipeline is built."""
        ...
