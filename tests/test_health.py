import pytest
from prometheus_client import REGISTRY

from battery_rental.monitoring.metrics import MetricsCollector


@pytest.mark.api
def test_health_ok(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


@pytest.mark.api
def test_health_needs_no_identity(client):
    resp = client.get("/api/v1/health", headers={"X-User-Id": ""})
    assert resp.status_code == 200


@pytest.mark.api
def test_metrics_not_exposed_when_disabled(client):
    assert client.get("/metrics").status_code == 404


def test_metrics_collector_counts_payments():
    labels = {"service": "battery-rental", "method": "CASH"}
    before_count = REGISTRY.get_sample_value("battery_rental_payments_total", labels) or 0
    before_sum = (
        REGISTRY.get_sample_value("battery_rental_payment_amount_total", labels) or 0
    )

    MetricsCollector.record_payment("CASH", 250)

    assert REGISTRY.get_sample_value("battery_rental_payments_total", labels) == (
        before_count + 1
    )
    assert REGISTRY.get_sample_value(
        "battery_rental_payment_amount_total", labels
    ) == (before_sum + 250)


def test_metrics_collector_counts_returns():
    labels = {"service": "battery-rental", "operation": "returned"}
    before = REGISTRY.get_sample_value("battery_rental_rentals_total", labels) or 0

    MetricsCollector.record_return(3.5)

    assert REGISTRY.get_sample_value("battery_rental_rentals_total", labels) == before + 1
