"""
Prometheus metrics for the player import pipeline.

Metrics exposed:
- Uploaded file outcomes (validated, rejected by format, missing columns)
- Row outcomes across validation passes
- Commit outcomes per audit status
- End-to-end latency of validate/commit operations
"""
from prometheus_client import Counter, Histogram

player_import_files_total = Counter(
    "player_import_files_total",
    "Uploaded player import files by outcome",
    ["outcome"]
)

player_import_rows_total = Counter(
    "player_import_rows_total",
    "Player import rows seen by validation, by result",
    ["result"]
)

player_import_commits_total = Counter(
    "player_import_commits_total",
    "Player import commit attempts by final audit status",
    ["status"]
)

player_import_duration_seconds = Histogram(
    "player_import_duration_seconds",
    "Time spent in a player import operation",
    ["operation"]
)


def record_file_outcome(outcome: str):
    """Record what happened to an uploaded file (e.g. 'parsed', 'unsupported_format')."""
    player_import_files_total.labels(outcome=outcome).inc()


def record_row_results(valid: int, invalid: int):
    """Record per-row validation results for one validation pass."""
    if valid:
        player_import_rows_total.labels(result="valid").inc(valid)
    if invalid:
        player_import_rows_total.labels(result="invalid").inc(invalid)


def record_commit(status: str):
    """Record the terminal status of a commit attempt."""
    player_import_commits_total.labels(status=status).inc()
