"""Error taxonomy.

JSON-RPC errors carry a stable ``code`` that callers branch on. Materialization
errors describe what went wrong on disk and are mapped to an internal error by
the dispatcher.
"""
from __future__ import annotations
from typing import Any

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JSONRPCError(Exception):
    """Base class for errors reported inside a JSON-RPC error object."""
    code = INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ParseError(JSONRPCError):
    code = PARSE_ERROR
    default_message = "Parse error"


class MethodNotFoundError(JSONRPCError):
    code = METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParamsError(JSONRPCError):
    code = INVALID_PARAMS
    default_message = "Invalid params"


class InternalError(JSONRPCError):
    code = INTERNAL_ERROR
    default_message = "Internal error"


class MarshalError(InternalError):
    """A result or response could not be encoded as JSON."""
    default_message = "Failed to marshal result"


class MaterializeError(Exception):
    """Base class for failures while writing templates to disk."""


class DirectoryError(MaterializeError):
    """Target directory is missing or is not a directory."""

    def __init__(self, directory: str, message: str):
        self.directory = directory
        super().__init__(message)


class ConflictError(MaterializeError):
    """A destination path already exists."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"file already exists, refusing to overwrite: {path}")


class WriteError(MaterializeError):
    """Writing a destination file failed."""

    def __init__(self, filename: str, cause: OSError):
        self.filename = filename
        self.cause = cause
        super().__init__(f"writing {filename}: {cause}")
