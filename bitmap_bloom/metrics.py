from prometheus_client import Counter, Histogram

# insert / may_exist / count calls by outcome ("ok", "unavailable", "error")
BLOOM_OPERATIONS_TOTAL = Counter(
    "bloom_filter_operations_total",
    "Total Bloom filter operations against Redis",
    ["op", "outcome"],
)

# one observation per pipelined round trip
BLOOM_ROUNDTRIP_SECONDS = Histogram(
    "bloom_filter_roundtrip_seconds",
    "Redis round-trip latency (seconds) per Bloom filter operation",
    ["op"],
    buckets=(0.0005, 0.001, 0.002, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
