"""Persistence for the staging area."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from lilgit.errors import MalformedObjectError
from lilgit.models.stage import StagingArea

logger = logging.getLogger(__name__)


class StagingStore:
    """Reads and rewrites the staging area file on every mutation."""

    def __init__(self, index_file: Path):
        self.index_file = Path(index_file)

    def load(self) -> StagingArea:
        if not self.index_file.exists():
            return StagingArea()
        try:
            return StagingArea.model_validate_json(self.index_file.read_bytes())
        except ValidationError as e:
            raise MalformedObjectError(f"staging area: {e}") from e

    def save(self, stage: StagingArea) -> None:
        self.index_file.write_text(
            json.dumps(stage.model_dump(), indent=2, sort_keys=True), encoding="utf-8"
        )
        logger.debug(
            "Saved staging area (%d added, %d removed)",
            len(stage.staged_add),
            len(stage.staged_remove),
        )

    @contextmanager
    def edit(self) -> Iterator[StagingArea]:
        """Load, yield for mutation, and save only if the block succeeds."""
        stage = self.load()
        yield stage
        self.save(stage)

    def clear(self) -> None:
        self.save(StagingArea())
