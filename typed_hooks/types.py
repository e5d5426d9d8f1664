"""Hook schema types, results and errors."""

import collections.abc
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Union


class HookError(Exception):
    """Base class for hook registry errors."""


class UnknownHookError(HookError, ValueError):
    """Raised when a hook name is not declared by the registry's schema."""


class HookSignatureError(HookError, TypeError):
    """Raised when a callback does not fit the signature declared for its hook."""


class HookSchemaError(HookError, TypeError):
    """Raised when a hook schema declaration is malformed."""


@dataclass(frozen=True)
class HookSpec:
    """Declared shape of a single hook.

    ``arity`` counts the positional arguments passed after the context.
    ``None`` leaves the callback signature unchecked.
    """

    name: str
    arity: Optional[int] = None
    description: str = ""


class HookSchema:
    """Declares a closed set of hooks as class annotations.

    Each annotation names a hook and gives its callback type. The first
    parameter of the callable is the dispatch context::

        class EditorHooks(HookSchema):
            save: Callable[[Any, int], None]
            load: Callable[[Any], None]
            reset: Callable[..., None]

    ``save`` takes one argument after the context, ``load`` none, and
    ``reset`` is left unchecked.
    """

    @classmethod
    def specs(cls) -> dict[str, HookSpec]:
        """Return the declared hooks, in declaration order."""
        try:
            hints = typing.get_type_hints(cls)
        except NameError as e:
            raise HookSchemaError(f"Unresolvable annotation in {cls.__name__}: {e}") from e

        specs: dict[str, HookSpec] = {}
        for name, hint in hints.items():
            if name.startswith("_"):
                continue
            specs[name] = HookSpec(name=name, arity=_arity_of(cls.__name__, name, hint))
        return specs


def _arity_of(schema_name: str, hook_name: str, hint: Any) -> Optional[int]:
    if typing.get_origin(hint) is not collections.abc.Callable:
        return None

    args = typing.get_args(hint)
    if not args or args[0] is Ellipsis:
        return None

    params = args[0]
    # ParamSpec and Concatenate hooks are left unchecked
    if not isinstance(params, (list, tuple)):
        return None
    if not params:
        raise HookSchemaError(
            f"{schema_name}.{hook_name}: callback must accept the dispatch context"
        )
    return len(params) - 1


SchemaSource = Union[type[HookSchema], type[Enum], Iterable[HookSpec]]


def resolve_schema(source: SchemaSource) -> dict[str, HookSpec]:
    """Normalize any accepted schema declaration into name -> HookSpec."""
    if isinstance(source, type) and issubclass(source, HookSchema):
        return source.specs()

    if isinstance(source, type) and issubclass(source, Enum):
        specs = {}
        for member in source:
            if not isinstance(member.value, str):
                raise HookSchemaError(
                    f"{source.__name__}.{member.name}: hook names must be strings"
                )
            specs[member.value] = HookSpec(name=member.value)
        return specs

    if isinstance(source, (str, bytes)) or not isinstance(source, collections.abc.Iterable):
        raise HookSchemaError(f"Unsupported hook schema: {source!r}")

    specs = {}
    for spec in source:
        if not isinstance(spec, HookSpec):
            raise HookSchemaError(f"Expected HookSpec, got {spec!r}")
        if spec.name in specs:
            raise HookSchemaError(f"Hook '{spec.name}' declared twice")
        specs[spec.name] = spec
    return specs


@dataclass
class HookResult:
    """Settled outcome of one callback from an asynchronous dispatch."""

    success: bool
    handler_name: str
    result: Any = None
    error: Optional[str] = None
    exception: Optional[BaseException] = None
