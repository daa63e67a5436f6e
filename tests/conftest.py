import os
import sys
from io import BytesIO

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from widebf.brainfuck import TapeMachine


@pytest.fixture
def machine_factory():
    """Build a machine over in-memory streams; returns (machine, output buffer)."""
    def make(data=b"", **kwargs):
        out = BytesIO()
        return TapeMachine(BytesIO(data), out, **kwargs), out
    return make
