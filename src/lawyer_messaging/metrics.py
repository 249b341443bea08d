"""Prometheus metrics, collected on an isolated registry."""

from prometheus_client import CollectorRegistry, Counter

CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total HTTP requests", ["path"], registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total HTTP error responses", ["status"], registry=CUSTOM_REGISTRY)
MESSAGES_SENT = Counter(
    "messages_sent_total", "Messages persisted", ["message_type"], registry=CUSTOM_REGISTRY
)
SOCKET_EVENTS = Counter(
    "socket_events_total", "Socket events handled", ["event", "outcome"], registry=CUSTOM_REGISTRY
)
SOCKET_CONNECTIONS = Counter(
    "socket_connections_total", "Socket handshakes", ["outcome"], registry=CUSTOM_REGISTRY
)
