import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from sqlalchemy.ext.asyncio import AsyncEngine

from sellfast.core.config import settings

log = logging.getLogger(__name__)

_configured = False


def _install_provider(role: str) -> bool:
    """Install the global OTLP tracer provider once per process. Returns False when tracing is off."""
    global _configured
    if not settings.telemetry_enabled:
        return False
    if _configured:
        return True

    resource = Resource.create(
        {
            "service.name": f"{settings.service_name}-{role}",
            "service.version": "0.1.0",
            "deployment.environment": settings.env,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{settings.otlp_endpoint}/v1/traces")))
    trace.set_tracer_provider(provider)
    _configured = True
    log.info("tracing enabled role=%s endpoint=%s", role, settings.otlp_endpoint)
    return True


def setup_telemetry(app, engine: AsyncEngine) -> None:
    if not _install_provider("api"):
        return
    FastAPIInstrumentor.instrument_app(app, excluded_urls="api/health")
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def setup_wizard_telemetry() -> None:
    # Wizard spans go through trace.get_tracer(); without a provider they are no-ops
    _install_provider("wizard")
