import io
import json

from cbtrace import Tracer
from cbtrace._trace.writer import LogWriter
from cbtrace.constants import ENV_KEY
from cbtrace.constants import PID
from cbtrace.constants import VERSION_KEY
from tests.utils import DummyWriter
from tests.utils import TracerTestCase
from tests.utils import override_global_config


class TracerTestCases(TracerTestCase):
    def test_start_span(self):
        span = self.tracer.start_span("web.request", service="web", resource="/", span_type="http")
        span.finish()

        spans = self.pop_spans()
        assert spans == [span]
        assert span.name == "web.request"
        assert span.service == "web"
        assert span.resource == "/"
        assert span.span_type == "http"
        assert span.parent_id is None
        assert span.get_metric(PID) is not None

    def test_start_span_child_of(self):
        parent = self.tracer.start_span("parent", service="web")
        child = self.tracer.start_span("child", child_of=parent)

        assert child.trace_id == parent.trace_id
        assert child.parent_id == parent.span_id
        assert child.service == "web"
        assert child._parent is parent
        assert child._local_root is parent
        assert child.get_metric(PID) is None

    def test_start_span_not_activated(self):
        self.tracer.start_span("detached")
        assert self.tracer.current_span() is None

    def test_trace_parenting(self):
        with self.tracer.trace("parent") as parent:
            assert self.tracer.current_span() is parent
            with self.tracer.trace("child") as child:
                assert self.tracer.current_span() is child
                assert self.tracer.current_root_span() is parent
            assert self.tracer.current_span() is parent
        assert self.tracer.current_span() is None

        assert child.parent_id == parent.span_id
        self.assert_span_count(2)

    def test_global_service(self):
        with override_global_config(dict(service="app", version="1.2.3", env="staging")):
            span = self.tracer.start_span("root")
            other = self.tracer.start_span("couchbase.call", service="app-couchbase")

        assert span.service == "app"
        assert span.get_tag(VERSION_KEY) == "1.2.3"
        assert span.get_tag(ENV_KEY) == "staging"
        # the version only describes the application's own service
        assert other.get_tag(VERSION_KEY) is None
        assert other.get_tag(ENV_KEY) == "staging"

    def test_disabled(self):
        self.tracer.enabled = False
        with self.tracer.trace("ignored") as span:
            pass

        assert span.finished
        self.assert_has_no_spans()

    def test_on_start_span(self):
        started = []

        @self.tracer.on_start_span
        def hook(span):
            started.append(span)

        span = self.tracer.start_span("hooked")
        assert started == [span]

        self.tracer.deregister_on_start_span(hook)
        self.tracer.start_span("unhooked")
        assert started == [span]

    def test_on_start_span_error(self):
        def hook(span):
            raise ValueError("boom")

        self.tracer.on_start_span(hook)
        span = self.tracer.start_span("hooked")
        assert span.name == "hooked"

    def test_write_error(self):
        class BrokenWriter(DummyWriter):
            def write(self, spans=None):
                raise IOError("broken pipe")

        tracer = Tracer(writer=BrokenWriter())
        tracer.enabled = True
        span = tracer.start_span("lost")
        span.finish()
        assert span.finished


def test_log_writer():
    out = io.StringIO()
    tracer = Tracer(writer=LogWriter(out=out))
    tracer.enabled = True

    span = tracer.start_span("couchbase.call", service="couchbase", resource="SELECT 1+1", span_type="sql")
    span.set_tag("bucket.name", "datadog-test")
    span.finish()

    payload = json.loads(out.getvalue())
    (trace,) = payload["traces"]
    (encoded,) = trace
    assert encoded["name"] == "couchbase.call"
    assert encoded["type"] == "sql"
    assert encoded["meta"]["bucket.name"] == "datadog-test"
    assert encoded["span_id"] == span.span_id


def test_log_writer_default_stream(capsys):
    writer = LogWriter()
    tracer = Tracer(writer=writer)
    tracer.enabled = True

    # the stream is looked up when writing, so captured output sees the span
    tracer.start_span("couchbase.call").finish()
    writer.write([])

    (line,) = capsys.readouterr().out.splitlines()
    assert json.loads(line)["traces"][0][0]["name"] == "couchbase.call"
