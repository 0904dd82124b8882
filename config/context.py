# config/context.py
from dataclasses import dataclass
from typing import Optional
from prometheus_client import CollectorRegistry
from config.settings import Settings
from repository.object_store import ObjectStore
from service.credential_service import HtpasswdFile
from service.metrics_service import MetricsRecorder


@dataclass(frozen=True)
class ServerContext:
    """
    Process-wide state built once at startup and shared read-only by every
    request: the store handle, policy flags, credentials and metrics.
    """

    settings: Settings
    store: ObjectStore
    metrics: MetricsRecorder
    credentials: Optional[HtpasswdFile] = None

    @property
    def append_only(self) -> bool:
        return self.settings.APPEND_ONLY

    @classmethod
    def build(cls, settings: Settings, store: ObjectStore) -> "ServerContext":
        credentials = None
        if settings.HTPASSWD_FILE:
            credentials = HtpasswdFile(
                settings.HTPASSWD_FILE, allow_plaintext=settings.HTPASSWD_PLAINTEXT
            )
        return cls(
            settings=settings,
            store=store,
            metrics=MetricsRecorder(
                enabled=settings.METRICS_ENABLED, registry=CollectorRegistry()
            ),
            credentials=credentials,
        )
