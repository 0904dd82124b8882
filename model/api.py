# model/api.py
import posixpath
from pydantic import BaseModel
from repository.object_store import DirEntry


class ListItem(BaseModel):
    """One element of the v2 list response."""

    name: str
    size: int

    @classmethod
    def from_entry(cls, entry: DirEntry) -> "ListItem":
        return cls(name=posixpath.basename(entry.remote), size=entry.size)


class HealthResponse(BaseModel):
    ok: bool
