# repository/paths.py
import posixpath
from typing import Final, FrozenSet, Iterator, Optional
from util.constants import ROOT_REPO, SHARD_COUNT
from util.enums import BlobType
from util.errors import InvalidName, InvalidType, NameTooShort

VALID_TYPES: Final[FrozenSet[str]] = frozenset(t.value for t in BlobType)

# Only data blobs are split into <name[:2]> subdirectories.
SHARDED_TYPE: Final[str] = BlobType.DATA.value
SHARD_PREFIX_LEN: Final[int] = 2


def is_valid_type(blob_type: str) -> bool:
    return blob_type in VALID_TYPES


def is_sharded(blob_type: str) -> bool:
    return blob_type == SHARDED_TYPE


def _check_segment(segment: str, what: str) -> None:
    if not segment or segment in (".", "..") or "/" in segment or "\x00" in segment:
        raise InvalidName(f"invalid {what}: {segment!r}")


def _join(*parts: str) -> str:
    # Mirrors a cleaned path join: ".", "config" -> "config".
    return posixpath.normpath(posixpath.join(*parts))


def repo_segment(repo: Optional[str]) -> str:
    """
    Return the repository prefix for a request.
    No repo placeholder in the route means the root namespace.
    """
    if repo is None:
        return ROOT_REPO
    _check_segment(repo, "repository")
    return repo


def resolve_type(repo: Optional[str], blob_type: str) -> str:
    if not is_valid_type(blob_type):
        raise InvalidType(f"invalid file type: {blob_type!r}")
    return _join(repo_segment(repo), blob_type)


def resolve_blob(repo: Optional[str], blob_type: str, name: str) -> str:
    if not is_valid_type(blob_type):
        raise InvalidType(f"invalid file type: {blob_type!r}")
    _check_segment(name, "file name")
    prefix = repo_segment(repo)
    if is_sharded(blob_type):
        if len(name) < SHARD_PREFIX_LEN:
            raise NameTooShort(f"file name is too short: {name!r}")
        return _join(prefix, blob_type, name[:SHARD_PREFIX_LEN], name)
    return _join(prefix, blob_type, name)


def resolve_config(repo: Optional[str]) -> str:
    return resolve_type(repo, BlobType.CONFIG.value)


def repository_layout(repo: Optional[str]) -> Iterator[str]:
    """
    Directories making up an initialized repository, in creation order:
      - the repository itself
      - one directory per blob type except config
      - data/00 .. data/ff
    """
    prefix = repo_segment(repo)
    yield prefix
    for t in BlobType:
        if t is BlobType.CONFIG:
            continue
        yield _join(prefix, t.value)
    for i in range(SHARD_COUNT):
        yield _join(prefix, SHARDED_TYPE, f"{i:02x}")
