import contextlib
import os
from typing import List  # noqa:F401
import unittest

import cbtrace
from cbtrace import Span
from cbtrace import Tracer
from cbtrace._trace.writer import TraceWriter


@contextlib.contextmanager
def override_env(env):
    """
    Temporarily override ``os.environ`` with provided values::

        >>> with override_env(dict(DD_COUCHBASE_SERVICE="cb")):
            # Your test
    """
    # Copy the full original environment
    original = dict(os.environ)

    os.environ.update(env)
    try:
        yield
    finally:
        # Full clear the environment out and reset back to the original
        os.environ.clear()
        os.environ.update(original)


@contextlib.contextmanager
def override_global_config(values):
    """
    Temporarily override a global configuration::

        >>> with override_global_config(dict(name=value,...)):
            # Your test
    """
    # List of global variables we allow overriding
    global_config_keys = [
        "_tracing_enabled",
        "context_propagation",
        "env",
        "version",
        "service",
    ]

    # Grab the current values of all keys
    originals = dict((key, getattr(cbtrace.config, key)) for key in global_config_keys)

    # Override from the passed in keys
    for key, value in values.items():
        if key in global_config_keys:
            setattr(cbtrace.config, key, value)
    try:
        yield
    finally:
        # Reset all to their original values
        for key, value in originals.items():
            setattr(cbtrace.config, key, value)


@contextlib.contextmanager
def override_config(integration, values):
    """
    Temporarily override an integration configuration value::

        >>> with override_config("couchbase", dict(service="test-service")):
            # Your test
    """
    options = getattr(cbtrace.config, integration)

    original = dict((key, options.get(key)) for key in values.keys())

    options.update(values)
    try:
        yield
    finally:
        options.update(original)


class DummyWriter(TraceWriter):
    """DummyWriter keeps every written span in memory."""

    def __init__(self):
        self.spans = []  # type: List[Span]
        self.traces = []  # type: List[List[Span]]

    def write(self, spans=None):
        if spans:
            # the traces encoding expect a list of traces so we
            # put spans in a list like we do in the real execution path
            self.spans += spans
            self.traces += [spans]

    def pop(self):
        # type: () -> List[Span]
        s = self.spans
        self.spans = []
        return s

    def pop_traces(self):
        # type: () -> List[List[Span]]
        traces = self.traces
        self.traces = []
        return traces


class DummyTracer(Tracer):
    """
    DummyTracer is a tracer which uses the DummyWriter by default
    """

    def __init__(self, *args, **kwargs):
        super(DummyTracer, self).__init__(writer=DummyWriter())
        # spans are written even when tracing is disabled by the environment
        self.enabled = True

    @property
    def writer(self):
        # type: () -> DummyWriter
        return self._writer

    def pop(self):
        # type: () -> List[Span]
        return self._writer.pop()

    def pop_traces(self):
        # type: () -> List[List[Span]]
        return self._writer.pop_traces()


class TestSpan(object):
    """
    Test wrapper for a :class:`cbtrace.Span` that provides additional assertions

    Example::

        span = TestSpan(tracer.trace("my.span"))
        span.assert_matches(name="my.span")
    """

    __test__ = False

    def __init__(self, span):
        if isinstance(span, TestSpan):
            span = span._span

        # DEV: Use `object.__setattr__` to by-pass this class's `__setattr__`
        object.__setattr__(self, "_span", span)

    def __getattr__(self, key):
        return getattr(self._span, key)

    def __setattr__(self, key, value):
        """Pass through all assignment to the base :class:`cbtrace.Span`"""
        return setattr(self._span, key, value)

    def __eq__(self, other):
        if isinstance(other, TestSpan):
            return other._span is self._span
        return other is self._span

    def __hash__(self):
        return hash(self._span)

    def assert_matches(self, **kwargs):
        """
        Assertion method to ensure this span's properties match as expected

        :raises: AssertionError
        """
        for name, value in kwargs.items():
            # Special case for `meta`
            if name == "meta":
                self.assert_meta(value)
            else:
                assert hasattr(self._span, name), "{0!r} does not have property {1!r}".format(self._span, name)
                assert getattr(self._span, name) == value, "{0!r} property {1}: {2!r} != {3!r}".format(
                    self._span, name, getattr(self._span, name), value
                )

    def assert_meta(self, meta, exact=False):
        """
        Assertion method to ensure this span's meta match as expected

        :param meta: Property/Value pairs to evaluate on this span
        :param exact: Whether to do an exact match on the meta values or not, default: False
        :raises: AssertionError
        """
        if exact:
            assert self._span.get_tags() == meta
        else:
            for key, value in meta.items():
                assert key in self._span._meta, "{0} meta does not have property {1!r}".format(self._span, key)
                assert self._span.get_tag(key) == value, "{0} meta property {1!r}: {2!r} != {3!r}".format(
                    self._span, key, self._span.get_tag(key), value
                )


class TracerTestCase(unittest.TestCase):
    """
    TracerTestCase is a base test case for when you need access to a dummy tracer and span assertions
    """

    def setUp(self):
        """Before each test case, setup a dummy tracer to use"""
        self.tracer = DummyTracer()
        super(TracerTestCase, self).setUp()

    def tearDown(self):
        """After each test case, reset and remove the dummy tracer"""
        super(TracerTestCase, self).tearDown()
        self.reset()
        delattr(self, "tracer")

    def get_spans(self):
        # type: () -> List[Span]
        return self.tracer.writer.spans

    def pop_spans(self):
        # type: () -> List[Span]
        return self.tracer.pop()

    def pop_traces(self):
        # type: () -> List[List[Span]]
        return self.tracer.pop_traces()

    def reset(self):
        """Helper to reset the existing list of spans created"""
        self.tracer.pop()
        self.tracer.pop_traces()

    def assert_span_count(self, count):
        """Assert this test case has the expected number of spans"""
        spans = self.get_spans()
        assert len(spans) == count, "Span count {0} != {1}".format(len(spans), count)

    def assert_has_no_spans(self):
        """Assert this test case does not have any spans"""
        assert len(self.get_spans()) == 0, "Span count {0}".format(len(self.get_spans()))

    def find_span(self, **kwargs):
        """Find a single span matching the provided properties"""
        spans = [TestSpan(s) for s in self.get_spans()]
        for span in spans:
            if all(getattr(span._span, k) == v for k, v in kwargs.items()):
                return span
        raise AssertionError("No span found for filter {0!r}, have {1} spans".format(kwargs, len(spans)))
