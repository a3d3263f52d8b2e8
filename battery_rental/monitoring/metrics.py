from decimal import Decimal

from prometheus_client import Counter, Histogram, Info
from prometheus_fastapi_instrumentator import Instrumentator

# Business metrics
rentals_total = Counter(
    "battery_rental_rentals_total",
    "Rental lifecycle operations",
    ["service", "operation"],  # operation=created/returned/rejected
)

payments_total = Counter(
    "battery_rental_payments_total",
    "Total number of payments recorded",
    ["service", "method"],  # method=CASH/MOBILE_MONEY/BANK_TRANSFER
)

payment_amount_total = Counter(
    "battery_rental_payment_amount_total",
    "Sum of recorded payment amounts",
    ["service", "method"],
)

credit_recomputes_total = Counter(
    "battery_rental_credit_recomputes_total",
    "Credit rating recomputations",
    ["service", "result"],  # result=updated/skipped/failed
)

rental_duration_days = Histogram(
    "battery_rental_rental_duration_days",
    "Duration of returned rentals in days",
    ["service"],
    buckets=[1, 2, 3, 5, 7, 10, 14, 30, 60],
)

# Application info
app_info = Info("battery_rental_app_info", "Application information")


def setup_instrumentator() -> Instrumentator:
    return Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/api/v1/health"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )


def init_app_info(version: str = "1.0.0"):
    app_info.info({"version": version, "service": "battery-rental", "component": "api"})


class MetricsCollector:
    SERVICE_NAME = "battery-rental"

    @staticmethod
    def record_rental(operation: str):
        rentals_total.labels(
            service=MetricsCollector.SERVICE_NAME, operation=operation
        ).inc()

    @staticmethod
    def record_return(duration_days: float):
        MetricsCollector.record_rental("returned")
        rental_duration_days.labels(service=MetricsCollector.SERVICE_NAME).observe(
            max(duration_days, 0)
        )

    @staticmethod
    def record_payment(method: str, amount: Decimal):
        payments_total.labels(service=MetricsCollector.SERVICE_NAME, method=method).inc()
        payment_amount_total.labels(
            service=MetricsCollector.SERVICE_NAME, method=method
        ).inc(float(amount))

    @staticmethod
    def record_credit_recompute(result: str):
        credit_recomputes_total.labels(
            service=MetricsCollector.SERVICE_NAME, result=result
        ).inc()
