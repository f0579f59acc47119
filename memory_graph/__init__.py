"""JSONL-backed knowledge graph memory with an MCP tool surface."""

__version__ = "0.7.0"

from .types import Entity, Relation, Graph
from .constants import *
from .exceptions import *
from .persistence import GraphPersistence
from .manager import KnowledgeGraphManager
from .config import MemoryConfig, ensure_memory_path

__all__ = [
    # Types
    "Entity",
    "Relation",
    "Graph",
    # Constants
    "MIN_IMPORTANCE",
    "MAX_IMPORTANCE",
    "EXPORT_FORMATS",
    # Exceptions
    "KGError",
    "EntityNotFoundError",
    "ValidationError",
    "UnsupportedFormatError",
    "StorageIOError",
    # Classes
    "GraphPersistence",
    "KnowledgeGraphManager",
    "MemoryConfig",
    # Bootstrap
    "ensure_memory_path",
]
