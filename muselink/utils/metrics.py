"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
unlock_attempts_total = Counter(
    "unlock_attempts_total",
    "Unlock attempts by outcome",
    ["outcome"],  # granted, or the error code
)

credit_operations_total = Counter(
    "credit_operations_total",
    "Credit balance operations",
    ["operation"],  # DEBIT, TOPUP
)

requests_closed_total = Counter(
    "requests_closed_total",
    "Requests moved to closed",
    ["reason"],  # quota, manual
)

# Histograms
unlock_duration_seconds = Histogram(
    "unlock_duration_seconds",
    "Unlock transaction duration, including lock waits",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1, 5],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
