"""Prometheus metrics for vocabox."""
from prometheus_client import Counter, Histogram, start_http_server

# Learning metrics
answers = Counter(
    "vocabox_answers_total",
    "Total number of answers recorded",
    ["outcome"],
)

box_promotions = Counter(
    "vocabox_box_promotions_total",
    "Total number of words moved up into a box",
    ["box"],
)

# Ingestion metrics
words_added = Counter(
    "vocabox_words_added_total",
    "Total number of words added through bulk ingestion",
)

progress_seeded = Counter(
    "vocabox_progress_seeded_total",
    "Total number of box-1 progress records created by seeding",
)

students_upserted = Counter(
    "vocabox_students_upserted_total",
    "Total number of roster rows applied",
    ["action"],
)

# Auth metrics
logins = Counter(
    "vocabox_logins_total",
    "Total number of login attempts",
    ["kind", "result"],
)

# Performance metrics
request_duration = Histogram(
    "vocabox_request_duration_seconds",
    "Duration of store-backed operations in seconds",
    ["handler"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# Database metrics
db_operations = Counter(
    "vocabox_db_operations_total",
    "Total number of database operations",
    ["operation_type"],
)

db_errors = Counter(
    "vocabox_db_errors_total",
    "Total number of database errors",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
