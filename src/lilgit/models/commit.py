"""Commit model for lilgit repositories."""

import json
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError, model_validator

from lilgit.errors import MalformedObjectError

ROOT_MESSAGE = "initial commit"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Commit(BaseModel):
    """An immutable snapshot: message, time, parents and a path -> blob map."""

    message: str
    timestamp: datetime
    parent: Optional[str] = None
    second_parent: Optional[str] = None
    tree: Dict[str, str] = {}

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _merge_has_first_parent(self) -> "Commit":
        if self.second_parent is not None and self.parent is None:
            raise ValueError("second_parent requires parent")
        return self

    @classmethod
    def root(cls) -> "Commit":
        """The initial commit, identical in every repository."""
        return cls(message=ROOT_MESSAGE, timestamp=EPOCH)

    @property
    def parents(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.parent, self.second_parent)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_merge(self) -> bool:
        return self.second_parent is not None

    def serialize(self) -> bytes:
        """Canonical bytes; the commit id is the hash of these."""
        data = self.model_dump(mode="json")
        return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")

    @classmethod
    def deserialize(cls, data: bytes, commit_id: Optional[str] = None) -> "Commit":
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise MalformedObjectError(str(e), commit_id) from e

    def display_date(self) -> str:
        """Date in log format, e.g. ``Thu Jan 1 00:00:00 1970 +0000``."""
        ts = self.timestamp
        return f"{ts:%a %b} {ts.day} {ts:%H:%M:%S %Y %z}"
