from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        # Try to create it
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        # If it already exists, retrieve it from the registry
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "echoflow_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "echoflow_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

PROPOSALS_EXTRACTED_TOTAL = get_or_create_metric(
    "echoflow_proposals_extracted_total",
    "Action proposals staged after normalization",
    Counter,
    labelnames=["kind"],
)

PROPOSALS_COMMITTED_TOTAL = get_or_create_metric(
    "echoflow_proposals_committed_total",
    "Committed proposals by outcome",
    Counter,
    labelnames=["outcome"],
)

CLASSIFIER_FAILURES_TOTAL = get_or_create_metric(
    "echoflow_classifier_failures_total", "Classifier calls that failed", Counter
)

PENDING_PROPOSALS = get_or_create_metric(
    "echoflow_pending_proposals", "Proposals awaiting a decision", Gauge
)
