import warnings

import pytest

from cbtrace._trace.provider import _DD_CONTEXTVAR
from tests.utils import DummyTracer


@pytest.fixture
def tracer():
    return DummyTracer()


@pytest.fixture(autouse=True)
def clear_context_after_every_test():
    try:
        yield
    finally:
        span = _DD_CONTEXTVAR.get()
        if span is not None:
            warnings.warn(f"Context was not cleared after test, expected None, got {span}")
        _DD_CONTEXTVAR.set(None)
