"""OpenTelemetry counters for trip submissions and similarity queries.

Without an SDK meter provider installed (see main.init_otel_sdk) these are
no-op instruments.
"""

from opentelemetry import metrics

meter = metrics.get_meter("fare_service")

trip_submissions = meter.create_counter(
    name="trip_submissions_total",
    description="Trips persisted, by validation status",
    unit="1",
)

trip_rejections = meter.create_counter(
    name="trip_rejections_total",
    description="Trip submissions rejected before persistence, by error code",
    unit="1",
)

similarity_queries = meter.create_counter(
    name="similarity_queries_total",
    description="Similar-trip analysis requests, by outcome",
    unit="1",
)

__all__ = ["meter", "trip_submissions", "trip_rejections", "similarity_queries"]
