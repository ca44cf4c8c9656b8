"""
Prometheus metrics for the Kafka adapters.

Focused on essential metrics:
- Connect attempts and their outcome
- Fatal reconnects and reconnect budget exhaustion
- Message consumption and production counts
- Codec and transport error rates
- Connection health
"""

from prometheus_client import Counter, Gauge

# =============================================================================
# Connection lifecycle
# =============================================================================

connect_attempts_counter = Counter(
    "kafka_relay_connect_attempts_total",
    "Total connection attempts by role and outcome",
    labelnames=["role", "outcome"],
)

reconnects_counter = Counter(
    "kafka_relay_fatal_reconnects_total",
    "Connections discarded after a fatal transport error",
    labelnames=["role"],
)

budget_exhausted_counter = Counter(
    "kafka_relay_reconnect_budget_exhausted_total",
    "Times the reconnect budget ran out",
    labelnames=["role"],
)

connection_status_gauge = Gauge(
    "kafka_relay_connection_status",
    "Connection status (1=connected, 0=disconnected)",
    labelnames=["role"],
)

# =============================================================================
# Message flow
# =============================================================================

messages_consumed_counter = Counter(
    "kafka_relay_messages_consumed_total",
    "Total messages received and decoded",
    labelnames=["topic"],
)

messages_produced_counter = Counter(
    "kafka_relay_messages_produced_total",
    "Total messages delivered",
    labelnames=["topic"],
)

errors_counter = Counter(
    "kafka_relay_errors_total",
    "Errors surfaced to callers by role and error category",
    labelnames=["role", "error_category"],
)


def record_connect_attempt(role: str, success: bool) -> None:
    connect_attempts_counter.labels(role=role, outcome="success" if success else "failure").inc()


def record_fatal_reconnect(role: str) -> None:
    reconnects_counter.labels(role=role).inc()


def record_budget_exhausted(role: str) -> None:
    budget_exhausted_counter.labels(role=role).inc()


def update_connection_status(role: str, connected: bool) -> None:
    connection_status_gauge.labels(role=role).set(1 if connected else 0)


def record_message_consumed(topic: str) -> None:
    messages_consumed_counter.labels(topic=topic).inc()


def record_message_produced(topic: str) -> None:
    messages_produced_counter.labels(topic=topic).inc()


def record_error(role: str, error_category: str) -> None:
    errors_counter.labels(role=role, error_category=error_category).inc()


__all__ = [
    "record_connect_attempt",
    "record_fatal_reconnect",
    "record_budget_exhausted",
    "update_connection_status",
    "record_message_consumed",
    "record_message_produced",
    "record_error",
]
