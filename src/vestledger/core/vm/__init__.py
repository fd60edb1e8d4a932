"""Contract execution primitives shared by the token and vesting contracts."""

from .exceptions import VMError, VMExecutionError

__all__ = ["VMError", "VMExecutionError"]
