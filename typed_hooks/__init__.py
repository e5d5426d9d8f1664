"""Typed hook registry for named callbacks."""

from .registry import HookCallback, HookRegistry, gather_results
from .types import (
    HookError,
    HookResult,
    HookSchema,
    HookSchemaError,
    HookSignatureError,
    HookSpec,
    UnknownHookError,
)

__all__ = [
    "HookRegistry",
    "HookCallback",
    "HookSchema",
    "HookSpec",
    "HookResult",
    "HookError",
    "HookSchemaError",
    "HookSignatureError",
    "UnknownHookError",
    "gather_results",
]
