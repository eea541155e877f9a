import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional

from blockforge.runtime.faults import RuntimeFault


_CURRENT_OBJECT: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "blockforge_current_object", default=None
)
_CURRENT_BLOCK: contextvars.ContextVar[Optional[tuple[str, str]]] = contextvars.ContextVar(
    "blockforge_current_block", default=None
)


def _format_with_context(
    message: str,
    *,
    object_id: Optional[str] = None,
    block: Optional[tuple[str, str]] = None,
) -> str:
    object_id = object_id if object_id is not None else _CURRENT_OBJECT.get()
    block = block if block is not None else _CURRENT_BLOCK.get()
    if object_id is None and block is None:
        return message

    details = []
    if object_id is not None:
        details.append(f"object {object_id!r}")
    if block is not None:
        uid, definition_id = block
        details.append(f"block {uid!r} ({definition_id})")
    return f"{message}\nLocation: " + ", ".join(details)


def format_block_diagnostic(message: str) -> str:
    """Attach the current object/block location to a warning string."""
    return _format_with_context(message)


@contextmanager
def object_context(object_id: str) -> Iterator[None]:
    token = _CURRENT_OBJECT.set(object_id)
    try:
        yield
    finally:
        _CURRENT_OBJECT.reset(token)


@contextmanager
def block_context(uid: str, definition_id: str) -> Iterator[None]:
    token = _CURRENT_BLOCK.set((uid, definition_id))
    try:
        yield
    finally:
        _CURRENT_BLOCK.reset(token)


class BlockForgeError(Exception):
    """Base error."""


class AuthoringError(BlockForgeError):
    """Raised when an edit would put a script graph out of shape."""


class UnknownBlockError(AuthoringError):
    """Raised when a block id is not present in the registry."""

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Unknown block id '{block_id}'.")


class InvalidStructureError(AuthoringError):
    """Raised when an attachment violates branch ownership or tree shape."""


class InvalidFieldValueError(AuthoringError):
    """Raised when a field value does not match its declared type."""


class CompileError(BlockForgeError):
    """Raised when one object's script graph cannot be lowered."""

    def __init__(self, message: str, *, object_id: Optional[str] = None):
        self.object_id = object_id if object_id is not None else _CURRENT_OBJECT.get()
        super().__init__(_format_with_context(message, object_id=self.object_id))


class ProjectImportError(BlockForgeError):
    """Raised when a packaged project cannot be read."""


class PasswordRequiredError(ProjectImportError):
    """Raised when an encrypted project is opened without a password."""


class WrongPasswordError(ProjectImportError):
    """Raised when decryption fails because of a bad password or tampered data."""


__all__ = [
    "AuthoringError",
    "BlockForgeError",
    "CompileError",
    "InvalidFieldValueError",
    "InvalidStructureError",
    "PasswordRequiredError",
    "ProjectImportError",
    "RuntimeFault",
    "UnknownBlockError",
    "WrongPasswordError",
    "block_context",
    "format_block_diagnostic",
    "object_context",
]
