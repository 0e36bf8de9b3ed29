"""Contract execution errors."""

from .exceptions import VMExecutionError

__all__ = ["VMExecutionError"]
