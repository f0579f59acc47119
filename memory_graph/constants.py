"""Constants for memory graph operations."""

from pathlib import Path

# Record tags
ENTITY_RECORD = "entity"
RELATION_RECORD = "relation"

# Importance bounds (inclusive)
MIN_IMPORTANCE = 0
MAX_IMPORTANCE = 10

# Export
EXPORT_FORMATS = ("json", "csv", "graphml")
LIST_SEPARATOR = "; "

# Storage
DEFAULT_MEMORY_DIR = Path.home() / ".memory-graph"
MEMORY_FILENAME = "memory.jsonl"
LEGACY_MEMORY_FILENAME = "memory.json"
IO_RETRIES = 2
IO_RETRY_DELAY_SECONDS = 0.05

# HTTP transport
DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 8765

SERVER_NAME = "memory-graph"
