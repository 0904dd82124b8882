# service/metrics_service.py
import logging
from typing import Dict, Final, NamedTuple, Optional
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

logger = logging.getLogger(__name__)

PREFIX: Final[str] = "restic_rest"
METRICS_CONTENT_TYPE: Final[str] = CONTENT_TYPE_LATEST

BLOB_READ_TOTAL: Final[str] = "blob_read_total"
BLOB_READ_BYTES_TOTAL: Final[str] = "blob_read_bytes_total"
BLOB_WRITE_TOTAL: Final[str] = "blob_write_total"
BLOB_WRITE_BYTES_TOTAL: Final[str] = "blob_write_bytes_total"
BLOB_DELETE_TOTAL: Final[str] = "blob_delete_total"
BLOB_DELETE_BYTES_TOTAL: Final[str] = "blob_delete_bytes_total"

_HELP: Final[Dict[str, str]] = {
    BLOB_READ_TOTAL: "Total number of blobs read",
    BLOB_READ_BYTES_TOTAL: "Total number of bytes read from blobs",
    BLOB_WRITE_TOTAL: "Total number of blobs written",
    BLOB_WRITE_BYTES_TOTAL: "Total number of bytes written to blobs",
    BLOB_DELETE_TOTAL: "Total number of blobs deleted",
    BLOB_DELETE_BYTES_TOTAL: "Total number of bytes of blobs deleted",
}


class MetricLabels(NamedTuple):
    user: str
    repo: str
    type: str


class MetricsRecorder:
    """
    Prometheus counters keyed by (user, repo, type), kept in a registry owned
    by this recorder so every app instance counts on its own.

    Recording is a no-op when disabled so handlers can call it unconditionally.
    """

    def __init__(self, enabled: bool = False, registry: Optional[CollectorRegistry] = None) -> None:
        self.enabled = enabled
        self.registry = registry or CollectorRegistry()
        self._counters: Dict[str, Counter] = {
            name: Counter(
                f"{PREFIX}_{name}",
                help_text,
                labelnames=MetricLabels._fields,
                registry=self.registry,
            )
            for name, help_text in _HELP.items()
        }

    def _record(self, count_name: str, bytes_name: str, labels: MetricLabels, n: int) -> None:
        if not self.enabled:
            return
        self._counters[count_name].labels(*labels).inc()
        self._counters[bytes_name].labels(*labels).inc(n)
        logger.debug(
            "metrics.%s user=%s repo=%s type=%s bytes=%d",
            count_name,
            labels.user,
            labels.repo,
            labels.type,
            n,
        )

    def record_read(self, labels: MetricLabels, n: int) -> None:
        self._record(BLOB_READ_TOTAL, BLOB_READ_BYTES_TOTAL, labels, n)

    def record_write(self, labels: MetricLabels, n: int) -> None:
        self._record(BLOB_WRITE_TOTAL, BLOB_WRITE_BYTES_TOTAL, labels, n)

    def record_delete(self, labels: MetricLabels, n: int) -> None:
        self._record(BLOB_DELETE_TOTAL, BLOB_DELETE_BYTES_TOTAL, labels, n)

    def value(self, name: str, labels: MetricLabels) -> float:
        # Counter samples are exposed as <prefix>_<name>, which already ends in _total.
        sample = self.registry.get_sample_value(f"{PREFIX}_{name}", labels._asdict())
        return sample or 0.0

    def render(self) -> bytes:
        """Prometheus text exposition of every counter."""
        return generate_latest(self.registry)
