"""Hook registry: named callbacks with ordered synchronous and asynchronous dispatch."""

import asyncio
import inspect
from enum import Enum
from types import MappingProxyType, MethodType
from typing import Any, Awaitable, Callable, Hashable, Iterable, Mapping, Optional

from loguru import logger

from .config import settings
from .types import (
    HookResult,
    HookSignatureError,
    HookSpec,
    SchemaSource,
    UnknownHookError,
    resolve_schema,
)

HookCallback = Callable[..., Any]


def _callback_name(callback: HookCallback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


def _same_callback(registered: HookCallback, candidate: HookCallback) -> bool:
    if registered is candidate:
        return True
    # Each attribute access builds a new bound method object
    if isinstance(registered, MethodType) and isinstance(candidate, MethodType):
        return registered.__self__ is candidate.__self__ and registered.__func__ is candidate.__func__
    return False


class HookRegistry:
    """Ordered registry of callbacks keyed by hook name.

    Callbacks are invoked as ``callback(context, *args)`` in registration
    order. Every dispatch iterates a snapshot of the callbacks present when
    it started, so callbacks that subscribe or unsubscribe during a dispatch
    only affect later dispatches.

    The registry assumes a single thread of control and does no locking.
    """

    def __init__(
        self,
        schema: Optional[SchemaSource] = None,
        validate_signatures: Optional[bool] = None,
        log_dispatch: Optional[bool] = None,
    ) -> None:
        """Initialize registry.

        Parameters
        ----------
        schema : HookSchema subclass, str Enum class, iterable of HookSpec, or None
            Closed set of hook names and their callback shapes. ``None``
            accepts any hashable name and skips signature checks.
        validate_signatures : bool, optional
            Check callback arity on registration. Defaults to settings.
        log_dispatch : bool, optional
            Log each dispatch at debug level. Defaults to settings.
        """
        self._schema: Optional[dict[str, HookSpec]] = (
            resolve_schema(schema) if schema is not None else None
        )
        self._validate_signatures = (
            settings.VALIDATE_SIGNATURES if validate_signatures is None else validate_signatures
        )
        self._log_dispatch = settings.LOG_DISPATCH if log_dispatch is None else log_dispatch
        self._hooks: dict[Hashable, list[HookCallback]] = {}

    @property
    def schema(self) -> Optional[Mapping[str, HookSpec]]:
        """Declared hooks, or None for an unbound registry."""
        if self._schema is None:
            return None
        return MappingProxyType(self._schema)

    def _resolve(self, hook_name: Hashable) -> Hashable:
        if isinstance(hook_name, Enum):
            hook_name = hook_name.value
        if self._schema is not None and hook_name not in self._schema:
            raise UnknownHookError(f"Unknown hook '{hook_name}'")
        return hook_name

    def _check_signature(self, hook_name: Hashable, callback: HookCallback) -> None:
        if not callable(callback):
            raise HookSignatureError(f"Callback for hook '{hook_name}' is not callable: {callback!r}")

        if not self._validate_signatures or self._schema is None:
            return
        arity = self._schema[hook_name].arity
        if arity is None:
            return

        try:
            signature = inspect.signature(callback)
        except (TypeError, ValueError):
            logger.debug(f"Cannot inspect {_callback_name(callback)}, skipping signature check")
            return

        try:
            signature.bind(*([None] * (arity + 1)))
        except TypeError as e:
            raise HookSignatureError(
                f"Callback {_callback_name(callback)} for hook '{hook_name}' must accept "
                f"a context and {arity} positional argument(s): {e}"
            ) from e

    def register(self, hook_name: Hashable, callback: HookCallback) -> "HookRegistry":
        """Append a callback to a hook.

        The same callback may be registered more than once; each
        registration is a separate entry.

        Parameters
        ----------
        hook_name : Hashable
            Hook to subscribe to.
        callback : callable
            Called as ``callback(context, *args)`` on dispatch.

        Returns
        -------
        HookRegistry
            This registry, for chaining.

        Raises
        ------
        UnknownHookError
            If the name is not declared by the schema.
        HookSignatureError
            If the callback cannot accept the hook's arguments.
        """
        name = self._resolve(hook_name)
        self._check_signature(name, callback)

        self._hooks.setdefault(name, []).append(callback)
        logger.debug(f"Registered hook callback: {_callback_name(callback)} for {name}")
        return self

    on = register

    def hook(self, hook_name: Hashable) -> Callable[[HookCallback], HookCallback]:
        """Decorator form of register; returns the function unchanged.

        Examples
        --------
        >>> @registry.hook("save")
        ... def log_save(ctx, doc_id):
        ...     pass
        """

        def decorator(func: HookCallback) -> HookCallback:
            self.register(hook_name, func)
            return func

        return decorator

    def unregister(self, hook_name: Hashable, callback: HookCallback) -> bool:
        """Remove the earliest registration of a callback.

        Parameters
        ----------
        hook_name : Hashable
            Hook the callback was registered under.
        callback : callable
            The registered callback. Matched by identity; bound methods match
            when they bind the same function to the same object.

        Returns
        -------
        bool
            True if an entry was removed.
        """
        name = self._resolve(hook_name)
        callbacks = self._hooks.get(name)
        if not callbacks:
            return False

        for index, registered in enumerate(callbacks):
            if _same_callback(registered, callback):
                del callbacks[index]
                break
        else:
            return False

        if not callbacks:
            del self._hooks[name]
        logger.debug(f"Unregistered hook callback: {_callback_name(callback)} from {name}")
        return True

    unsubscribe = unregister

    def unregister_all(self, hook_name: Hashable) -> bool:
        """Remove every callback for a hook. Returns True if any existed."""
        name = self._resolve(hook_name)
        callbacks = self._hooks.pop(name, None)
        if callbacks is None:
            return False
        logger.debug(f"Unregistered {len(callbacks)} hook callback(s) from {name}")
        return True

    def clear(self) -> None:
        """Remove every callback for every hook."""
        self._hooks.clear()

    def _snapshot(self, name: Hashable) -> tuple[HookCallback, ...]:
        callbacks = tuple(self._hooks.get(name, ()))
        if self._log_dispatch:
            logger.debug(f"Dispatching {name} to {len(callbacks)} callback(s)")
        return callbacks

    def invoke(self, hook_name: Hashable, context: Any, *args: Any) -> None:
        """Call every callback for a hook, in order, and discard the results.

        An exception raised by a callback propagates to the caller and the
        remaining callbacks are not called. Wrap callbacks that need
        isolation.

        Parameters
        ----------
        hook_name : Hashable
            Hook to dispatch.
        context : Any
            Passed as the first argument to every callback.
        *args
            Hook arguments passed after the context.
        """
        name = self._resolve(hook_name)
        for callback in self._snapshot(name):
            outcome = callback(context, *args)
            if inspect.iscoroutine(outcome):
                outcome.close()
                logger.warning(
                    f"Discarded coroutine from {_callback_name(callback)} during synchronous "
                    f"dispatch of {name}; use invoke_async to await it"
                )

    emit = invoke

    def invoke_async(self, hook_name: Hashable, context: Any, *args: Any) -> list[asyncio.Future]:
        """Call every callback for a hook and return one future per callback.

        Callbacks are called synchronously, in order. Awaitable results are
        scheduled as tasks; plain values and raised exceptions become
        already-settled futures. Nothing is awaited here, and one failing
        callback never prevents the others from being called.

        Must be called while an event loop is running.

        Parameters
        ----------
        hook_name : Hashable
            Hook to dispatch.
        context : Any
            Passed as the first argument to every callback.
        *args
            Hook arguments passed after the context.

        Returns
        -------
        list[asyncio.Future]
            Pending results in registration order; empty if nothing is registered.
        """
        name = self._resolve(hook_name)
        return self._fire(self._snapshot(name), context, args)

    emit_async = invoke_async

    async def invoke_and_gather(self, hook_name: Hashable, context: Any, *args: Any) -> list[HookResult]:
        """Dispatch asynchronously and await every callback.

        Returns
        -------
        list[HookResult]
            One summarized outcome per callback, in registration order.
        """
        name = self._resolve(hook_name)
        callbacks = self._snapshot(name)
        pending = self._fire(callbacks, context, args)
        return await gather_results(pending, [_callback_name(cb) for cb in callbacks])

    def _fire(
        self, callbacks: tuple[HookCallback, ...], context: Any, args: tuple[Any, ...]
    ) -> list[asyncio.Future]:
        loop = asyncio.get_running_loop()

        pending: list[asyncio.Future] = []
        for callback in callbacks:
            try:
                outcome = callback(context, *args)
            except asyncio.CancelledError:
                future = loop.create_future()
                future.cancel()
            except StopIteration as e:
                # Futures refuse StopIteration
                error = RuntimeError(f"{_callback_name(callback)} raised StopIteration")
                error.__cause__ = e
                future = loop.create_future()
                future.set_exception(error)
            except Exception as e:
                future = loop.create_future()
                future.set_exception(e)
            else:
                if inspect.isawaitable(outcome):
                    future = asyncio.ensure_future(outcome)
                else:
                    future = loop.create_future()
                    future.set_result(outcome)
            pending.append(future)
        return pending

    def has_subscriber(self, hook_name: Hashable) -> bool:
        """Return True if at least one callback is registered for the hook."""
        return bool(self._hooks.get(self._resolve(hook_name)))

    def get_callbacks(self, hook_name: Hashable) -> Optional[tuple[HookCallback, ...]]:
        """Return the callbacks for a hook in order, or None if there are none."""
        callbacks = self._hooks.get(self._resolve(hook_name))
        if not callbacks:
            return None
        return tuple(callbacks)

    def get_table(self) -> Mapping[Hashable, tuple[HookCallback, ...]]:
        """Return a read-only copy of the whole hook table."""
        return MappingProxyType({name: tuple(callbacks) for name, callbacks in self._hooks.items()})

    def list_handlers(self, hook_name: Optional[Hashable] = None) -> dict[Hashable, list[str]]:
        """List registered callback names.

        Parameters
        ----------
        hook_name : Hashable, optional
            Restrict the listing to one hook.

        Returns
        -------
        dict[Hashable, list[str]]
            Hook name (as stored in the table) to callback names, in
            registration order.
        """
        if hook_name is not None:
            name = self._resolve(hook_name)
            items: Iterable = [(name, self._hooks[name])] if name in self._hooks else []
        else:
            items = self._hooks.items()

        return {name: [_callback_name(cb) for cb in callbacks] for name, callbacks in items}


async def gather_results(
    pending: Iterable[Awaitable[Any]], handler_names: Optional[Iterable[str]] = None
) -> list[HookResult]:
    """Await pending results from invoke_async and summarize each outcome.

    Parameters
    ----------
    pending : iterable of awaitables
        Usually the list returned by HookRegistry.invoke_async.
    handler_names : iterable of str, optional
        Names to attach to the results, in the same order as ``pending``.

    Returns
    -------
    list[HookResult]
        One result per awaitable, in the same order.
    """
    pending = list(pending)
    names = list(handler_names) if handler_names is not None else [""] * len(pending)
    if len(names) != len(pending):
        raise ValueError(f"Got {len(names)} handler names for {len(pending)} pending results")

    outcomes = await asyncio.gather(*pending, return_exceptions=True)

    results = []
    for handler_name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            results.append(
                HookResult(
                    success=False,
                    handler_name=handler_name,
                    error=str(outcome),
                    exception=outcome,
                )
            )
        else:
            results.append(HookResult(success=True, handler_name=handler_name, result=outcome))
    return results
