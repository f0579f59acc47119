"""Graph persistence with whole-file atomic writes and bounded I/O retries."""

import logging
import os
import time
from pathlib import Path
from typing import Callable

from .codec import decode_record, encode_entity, encode_relation
from .constants import ENTITY_RECORD, IO_RETRIES, IO_RETRY_DELAY_SECONDS
from .exceptions import StorageIOError
from .types import Graph, empty_graph
from .utils import format_timestamp, utc_now

logger = logging.getLogger(__name__)


class GraphPersistence:
    """Loads and rewrites the full graph against a single JSONL file."""

    def __init__(self, path: Path, retries: int = IO_RETRIES,
                 retry_delay: float = IO_RETRY_DELAY_SECONDS):
        self.path = Path(path)
        self.retries = retries
        self.retry_delay = retry_delay

    def _with_retries(self, action: str, fn: Callable, allow_missing: bool = False):
        """Run fn, retrying transient OSErrors. With allow_missing, FileNotFoundError passes through."""
        attempt = 0
        while True:
            try:
                return fn()
            except OSError as e:
                if allow_missing and isinstance(e, FileNotFoundError):
                    raise
                if attempt >= self.retries:
                    logger.error(f"Failed to {action} {self.path}: {e}")
                    raise StorageIOError(self.path, f"Failed to {action} graph: {e}") from e
                attempt += 1
                logger.warning(f"Retrying {action} of {self.path} ({attempt}/{self.retries}): {e}")
                time.sleep(self.retry_delay)

    def load(self) -> Graph:
        """
        Load the graph from disk.
        A missing file is an empty graph; other read failures raise StorageIOError.
        """
        try:
            data = self._with_retries(
                "read", lambda: self.path.read_text(encoding="utf-8"), allow_missing=True
            )
        except FileNotFoundError:
            logger.debug(f"No graph file at {self.path}, starting empty")
            return empty_graph()
        except UnicodeDecodeError as e:
            logger.error(f"Failed to read {self.path}: {e}")
            raise StorageIOError(self.path, f"Graph file is not valid UTF-8: {e}") from e

        graph = empty_graph()
        now = format_timestamp(utc_now())
        for lineno, line in enumerate(data.split("\n"), start=1):
            if not line.strip():
                continue
            try:
                decoded = decode_record(line, now)
            except ValueError as e:
                raise StorageIOError(self.path, f"Invalid record on line {lineno}: {e}") from e
            if decoded is None:
                continue
            record_type, record = decoded
            if record_type == ENTITY_RECORD:
                graph["entities"].append(record)
            else:
                graph["relations"].append(record)

        logger.debug(
            f"Loaded graph from {self.path}: {len(graph['entities'])} entities, "
            f"{len(graph['relations'])} relations"
        )
        return graph

    def save(self, graph: Graph):
        """Rewrite the whole file: entities first, then relations, one record per line."""
        lines = [encode_entity(e) for e in graph["entities"]]
        lines.extend(encode_relation(r) for r in graph["relations"])
        self._with_retries("write", lambda: self._write_atomic("\n".join(lines)))
        logger.debug(f"Saved graph to {self.path}")

    def _write_atomic(self, text: str):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic write: write to temp file, then rename
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise
