"""
OpenTelemetry wiring for box office processes

The checkout use case opens a `marketplace.checkout` span on every purchase.
Until setup() runs, the OpenTelemetry API hands out no-op tracers, so unit tests
and short scripts pay nothing for those spans.

Environment:
    OTEL_EXPORTER_OTLP_ENDPOINT  gRPC collector (Jaeger, Tempo); unset disables export
    OTEL_CONSOLE_EXPORT=true     also print finished spans to stdout
"""

import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from sqlalchemy.ext.asyncio import AsyncEngine

from box_office.platform.config.core_setting import settings
from box_office.platform.logging.loguru_io import Logger


class TracingConfig:
    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        console_export: bool | None = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        if console_export is None:
            console_export = os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        self.console_export = console_export
        self._provider: TracerProvider | None = None

    def setup(self) -> None:
        """Install the global tracer provider; once per process."""
        self._provider = TracerProvider(
            resource=Resource(
                attributes={SERVICE_NAME: self.service_name, SERVICE_VERSION: settings.VERSION}
            ),
            # Sampling is left to the collector
            sampler=ALWAYS_ON,
        )
        exporters = []
        if self.otlp_endpoint:
            exporters.append(OTLPSpanExporter(endpoint=self.otlp_endpoint))
        if self.console_export:
            exporters.append(ConsoleSpanExporter())
        for exporter in exporters:
            self._provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(self._provider)
        if not exporters:
            Logger.base.info(f'📊 [TRACING] {self.service_name}: spans recorded, not exported')

    def instrument_sqlalchemy(self, *, engine: AsyncEngine) -> None:
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine, tracer_provider=self._provider
        )

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
