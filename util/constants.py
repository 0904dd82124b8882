from typing import Final

# Listing schema v2; v1 was a plain-text list of names.
LIST_MEDIA_TYPE_V2: Final[str] = "application/vnd.x.restic.rest.v2"

ROOT_REPO: Final[str] = "."
SHARD_COUNT: Final[int] = 256
AUTH_REALM: Final[str] = "restic"


class InternalURIs:
    HEALTHZ = "/healthz"
    METRICS = "/metrics"

    ROOT = "/"
    CONFIG = "/config"
    TYPE_DIR = "/{blob_type}/"
    BLOB = "/{blob_type}/{name}"

    REPO_ROOT = "/{repo}/"
    REPO_CONFIG = "/{repo}/config"
    REPO_TYPE_DIR = "/{repo}/{blob_type}/"
    REPO_BLOB = "/{repo}/{blob_type}/{name}"
