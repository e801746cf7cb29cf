from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .config import Settings

SERVICE_NAME = "resource-planning-api"

tracer = trace.get_tracer("resource_planning")
meter = metrics.get_meter("resource_planning")

time_entry_hours = meter.create_histogram(
    "time_entry.hours_worked",
    unit="h",
    description="Hours recorded per time entry",
)
planning_upserts = meter.create_counter(
    "planning.upserts",
    description="Weekly planning rows inserted or updated",
)


def _resource(settings: Settings) -> Resource:
    return Resource.create({"service.name": SERVICE_NAME, "deployment.env": settings.env})


def configure_tracing(settings: Settings, otlp_endpoint: Optional[str] = None) -> None:
    tracer_provider = TracerProvider(resource=_resource(settings))
    endpoint = otlp_endpoint or settings.otlp_endpoint
    if endpoint:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint))
        )
    trace.set_tracer_provider(tracer_provider)


def configure_metrics(settings: Settings, otlp_endpoint: Optional[str] = None) -> None:
    endpoint = otlp_endpoint or settings.otlp_endpoint
    metric_reader = None
    if endpoint:
        metric_reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=endpoint))
    provider_kwargs = {"resource": _resource(settings)}
    if metric_reader:
        provider_kwargs["metric_readers"] = [metric_reader]
    meter_provider = MeterProvider(**provider_kwargs)
    metrics.set_meter_provider(meter_provider)


_configured = False


def configure_observability(settings: Settings) -> bool:
    """Install the tracer and meter providers.

    OpenTelemetry only accepts one global provider per process, so later
    calls (another ``create_app`` in the same process) are no-ops.
    """
    global _configured
    if _configured:
        return False
    configure_tracing(settings)
    configure_metrics(settings)
    _configured = True
    return True
