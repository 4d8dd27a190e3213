"""JSON serialization of the gem index."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .aggregation import Index
from .exceptions import FileProcessingError
from .logging_config import logger

DEFAULT_OUTPUT_FILE = "index/rubygems.json"


def index_to_json(index: Index) -> dict[str, list[dict[str, Any]]]:
    """Convert an index to plain JSON-ready structures, preserving order."""
    return {name: [entry.to_dict() for entry in entries] for name, entries in index.items()}


def dated_path(path: Path, date: Optional[datetime] = None) -> Path:
    """
    Insert a UTC date before the file suffix.

    ``index/rubygems.json`` becomes ``index/rubygems-2024-01-31.json``.
    """
    stamp = (date or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return path.with_name(f"{path.stem}-{stamp}{path.suffix}")


class IndexSerializer:
    """
    Write an index as a JSON document.

    Args:
        output: Destination file
        pretty: Indent the document instead of writing it compactly
        date_stamp: Insert the current UTC date into the file name
    """

    def __init__(self, output: str | Path = DEFAULT_OUTPUT_FILE, pretty: bool = True, date_stamp: bool = False):
        self.output = Path(output)
        self.pretty = pretty
        self.date_stamp = date_stamp

    @property
    def destination(self) -> Path:
        return dated_path(self.output) if self.date_stamp else self.output

    def dumps(self, index: Index) -> str:
        data = index_to_json(index)
        if self.pretty:
            return json.dumps(data, indent=2) + "\n"
        return json.dumps(data, separators=(",", ":"))

    def write(self, index: Index) -> Path:
        """
        Write the index and return the path written.

        Raises:
            FileProcessingError: If the file cannot be written
        """
        destination = self.destination
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(self.dumps(index), encoding="utf-8")
        except OSError as e:
            raise FileProcessingError(f"Failed to write index to {destination}: {e}") from e

        logger.info(f"Wrote {len(index)} gem(s) to {destination}")
        return destination
