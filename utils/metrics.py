from prometheus_client import Counter, Gauge

PROCESSED_CHECKPOINTS_COUNTER = Counter(
    "indexer_processor_processed_checkpoints",
    "Number of checkpoints processed",
    ["processor_name"],
)

LATEST_PROCESSED_CHECKPOINT = Gauge(
    "indexer_processor_latest_checkpoint",
    "Latest committed checkpoint sequence number",
    ["processor_name"],
)

MATCHED_TRANSACTIONS_COUNTER = Counter(
    "indexer_processor_matched_transactions",
    "Number of transactions that called the filtered package",
    ["processor_name"],
)

SKIPPED_TRANSACTIONS_COUNTER = Counter(
    "indexer_processor_skipped_transactions",
    "Number of transactions skipped by the package filter",
    ["processor_name", "reason"],
)

SERIALIZATION_FAILURES_COUNTER = Counter(
    "indexer_processor_serialization_failures",
    "Number of transaction fields that could not be rendered to JSON",
    ["processor_name", "field"],
)

INSERTED_TRANSACTIONS_COUNTER = Counter(
    "indexer_processor_inserted_transactions",
    "Number of transaction rows newly inserted",
    ["processor_name"],
)
