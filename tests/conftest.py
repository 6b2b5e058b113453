from __future__ import annotations

import io

import pytest

from pipewright.context import background
from pipewright.ui.console import Console


@pytest.fixture
def console():
    return Console(out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def debug_console():
    return Console(debug=True, out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def ctx():
    return background()
