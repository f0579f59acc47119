"""Custom exceptions for memory graph operations."""

from pathlib import Path


class KGError(Exception):
    """Base exception for memory graph operations."""
    pass


class EntityNotFoundError(KGError):
    """Raised when an operation requires an entity that does not exist."""
    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Entity with name {entity_name} not found")


class ValidationError(KGError):
    """Raised when a value violates a data-model constraint."""
    pass


class UnsupportedFormatError(KGError):
    """Raised when an export format is not recognized."""
    def __init__(self, format: str):
        self.format = format
        super().__init__(f"Unsupported export format: {format}")


class StorageIOError(KGError):
    """Raised when the backing file cannot be read, decoded or written."""
    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{message} ({path})")
