import json

from opentelemetry.sdk.trace import TracerProvider

from resource_planning.core import observability
from resource_planning.core.config import Settings
from resource_planning.core.logging import add_trace_context, configure_logging, get_logger
from resource_planning.main import create_app


def test_json_log_lines_carry_service_and_env(capsys):
    configure_logging(Settings(_env_file=None, env="test", log_level="info"))

    get_logger("resource_planning.tests").info("rate_added", employee_id=7)

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["event"] == "rate_added"
    assert line["employee_id"] == 7
    assert line["level"] == "info"
    assert line["service"] == "Resource Planning API"
    assert line["env"] == "test"
    assert "timestamp" in line


def test_levels_below_threshold_are_dropped(capsys):
    configure_logging(Settings(_env_file=None, log_level="WARNING"))

    get_logger("resource_planning.tests").info("planning_upserted")

    assert "planning_upserted" not in capsys.readouterr().out


def test_trace_ids_are_added_inside_a_span():
    tracer = TracerProvider().get_tracer("resource_planning.tests")

    assert "trace_id" not in add_trace_context(None, "info", {"event": "outside"})
    with tracer.start_as_current_span("recompute_actual_hours") as span:
        event = add_trace_context(None, "info", {"event": "inside"})

    assert event["trace_id"] == format(span.get_span_context().trace_id, "032x")
    assert event["span_id"] == format(span.get_span_context().span_id, "016x")


def test_providers_are_installed_once_per_process(monkeypatch):
    calls = []
    monkeypatch.setattr(observability, "_configured", False)
    monkeypatch.setattr(observability, "configure_tracing", lambda settings: calls.append("tracing"))
    monkeypatch.setattr(observability, "configure_metrics", lambda settings: calls.append("metrics"))
    settings = Settings(_env_file=None, log_level="WARNING")

    assert observability.configure_observability(settings) is True
    assert observability.configure_observability(settings) is False
    create_app(settings)
    create_app(settings)

    assert calls == ["tracing", "metrics"]
