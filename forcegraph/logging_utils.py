from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxlist = 8
_repr.maxtuple = 8
_repr.maxset = 8
_repr.maxdict = 8

_WRAPPED_MARKER = "_forcegraph_debug_wrapped"


def summarize(value: Any, *, max_length: int = 300) -> str:
    """Render ``value`` compactly for DEBUG output."""

    if isinstance(value, np.ndarray):
        if value.size == 0:
            return f"ndarray(shape={value.shape}, dtype={value.dtype})"
        if value.dtype.kind in "biuf":
            return (
                f"ndarray(shape={value.shape}, dtype={value.dtype}, "
                f"min={float(value.min()):.6g}, max={float(value.max()):.6g})"
            )
        return f"ndarray(shape={value.shape}, dtype={value.dtype})"
    if isinstance(value, (set, frozenset)) and len(value) > _repr.maxset:
        return f"{type(value).__name__}(size={len(value)})"
    rendered = _repr.repr(value)
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _describe_call(args: Iterable[Any], kwargs: MutableMapping[str, Any]) -> str:
    rendered = [summarize(arg) for arg in args]
    rendered.extend(f"{key}={summarize(value)}" for key, value in kwargs.items())
    return ", ".join(rendered) if rendered else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that traces entry, exit and exceptions at DEBUG level."""

    def decorator(func: F) -> F:
        if getattr(func, _WRAPPED_MARKER, False):
            return func

        label = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("-> %s(%s)", label, _describe_call(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                logger.debug("!! %s raised %s: %s", label, type(exc).__name__, exc)
                raise
            if log_result:
                logger.debug("<- %s = %s", label, summarize(result))
            else:
                logger.debug("<- %s", label)
            return result

        setattr(wrapper, _WRAPPED_MARKER, True)
        return cast(F, wrapper)

    return decorator


def _wrap_class(cls: type, logger: logging.Logger, skip: Set[str]) -> None:
    for attr_name, attr_value in list(cls.__dict__.items()):
        if attr_name.startswith("__"):
            continue
        qualified = f"{cls.__name__}.{attr_name}"
        if attr_name in skip or qualified in skip:
            continue
        if isinstance(attr_value, staticmethod):
            setattr(cls, attr_name, staticmethod(debug_log_call(logger, name=qualified)(attr_value.__func__)))
        elif isinstance(attr_value, classmethod):
            setattr(cls, attr_name, classmethod(debug_log_call(logger, name=qualified)(attr_value.__func__)))
        elif inspect.isfunction(attr_value) and attr_value.__module__ == cls.__module__:
            setattr(cls, attr_name, debug_log_call(logger, name=qualified)(attr_value))


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
    wrap_methods: bool = True,
) -> None:
    """Wrap every function and class method defined in ``namespace`` with DEBUG tracing."""

    module_name = namespace.get("__name__")
    logger = logger or logging.getLogger(module_name if isinstance(module_name, str) else __name__)
    skip_set: Set[str] = set(skip or ())

    for name, value in list(namespace.items()):
        if name in skip_set or getattr(value, "__module__", None) != module_name:
            continue
        if inspect.isfunction(value):
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif wrap_methods and inspect.isclass(value):
            _wrap_class(value, logger, skip_set)


__all__ = ["summarize", "debug_log_call", "apply_debug_logging"]
