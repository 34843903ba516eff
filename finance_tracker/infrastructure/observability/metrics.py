"""Prometheus metrics for collection outcomes, relay health and webhook traffic"""

from prometheus_client import Counter, Histogram

# Collection metrics
collection_counter = Counter(
    "finance_collection_total",
    "Mobile-money collection requests handled",
    ["service", "outcome"],  # outcome: success | failed | error
)

simulation_counter = Counter(
    "finance_collection_simulated_total",
    "Collections answered by the local simulation instead of the gateway",
    ["outcome"],  # success | failed
)

# Relay / gateway metrics
relay_failure_counter = Counter(
    "payment_relay_failures_total",
    "Failed calls from the client to the payment relay",
    ["reason"],  # unreachable | timeout | http_status | transport | malformed
)

gateway_failure_counter = Counter(
    "payment_gateway_failures_total",
    "Failed calls from the relay to MeSomb",
)

# Webhook metrics
webhook_counter = Counter(
    "payment_webhooks_total",
    "Inbound gateway callbacks",
    ["result"],  # reconciled | unmatched | ignored | unverified
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_collection(service: str, success: bool, status: str) -> None:
    """Record a collection outcome for success-rate monitoring per carrier"""
    if success:
        outcome = "success"
    elif status == "ERROR":
        outcome = "error"
    else:
        outcome = "failed"
    collection_counter.labels(service=service, outcome=outcome).inc()
