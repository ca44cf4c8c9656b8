"""Tests for adapter Prometheus metrics."""

from prometheus_client import REGISTRY

from kafka_relay.common.metrics import (
    record_connect_attempt,
    record_error,
    record_message_consumed,
    update_connection_status,
)


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    def test_connect_attempt_outcomes(self):
        labels = {"role": "metrics_test", "outcome": "failure"}
        before = _sample("kafka_relay_connect_attempts_total", labels)

        record_connect_attempt("metrics_test", success=False)

        assert _sample("kafka_relay_connect_attempts_total", labels) == before + 1

    def test_connection_status_gauge(self):
        update_connection_status("metrics_test", connected=True)
        assert _sample("kafka_relay_connection_status", {"role": "metrics_test"}) == 1.0

        update_connection_status("metrics_test", connected=False)
        assert _sample("kafka_relay_connection_status", {"role": "metrics_test"}) == 0.0

    def test_message_and_error_counters(self):
        consumed = {"topic": "metrics-topic"}
        errors = {"role": "metrics_test", "error_category": "transient"}
        consumed_before = _sample("kafka_relay_messages_consumed_total", consumed)
        errors_before = _sample("kafka_relay_errors_total", errors)

        record_message_consumed("metrics-topic")
        record_error("metrics_test", "transient")

        assert _sample("kafka_relay_messages_consumed_total", consumed) == consumed_before + 1
        assert _sample("kafka_relay_errors_total", errors) == errors_before + 1
