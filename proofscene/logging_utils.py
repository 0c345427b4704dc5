from __future__ import annotations

import dataclasses
import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxstring = 80
_repr.maxlist = 6
_repr.maxtuple = 6
_repr.maxdict = 6


def _summarize_array(value: np.ndarray) -> str:
    parts = [f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"]
    if value.size and np.issubdtype(value.dtype, np.number):
        finite = value[np.isfinite(value)]
        if finite.size:
            parts.append(f"min={float(finite.min()):.6g}")
            parts.append(f"max={float(finite.max()):.6g}")
    return ", ".join(parts)


def summarize(value: Any, *, max_length: int = 240) -> str:
    """Compact one-line description of ``value`` for trace logs.

    Scene objects are reduced to their kind and id, parameter records to id
    and value, and whole states to object/parameter counts, so tracing a
    resolver call on a large scene stays readable.
    """

    if isinstance(value, np.ndarray):
        return _summarize_array(value)

    kind = getattr(type(value), "kind", None)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if kind is not None and hasattr(value, "id"):
            return f"<{kind.value} {value.id}>"
        if hasattr(value, "objects") and hasattr(value, "parameters"):
            return f"<state objects={len(value.objects)} parameters={len(value.parameters)}>"
        if hasattr(value, "value") and hasattr(value, "id"):
            return f"<param {value.id}={value.value!r}>"

    if isinstance(value, dict):
        items = [f"{summarize(k)}: {summarize(v)}" for k, v in list(value.items())[:4]]
        if len(value) > 4:
            items.append("...")
        return "{" + ", ".join(items) + "}"
    if isinstance(value, list) and value and not isinstance(value[0], (int, float)):
        items = [summarize(item) for item in value[:4]]
        if len(value) > 4:
            items.append("...")
        return "[" + ", ".join(items) + "]"

    try:
        rendered = _repr.repr(value)
    except Exception as exc:  # pragma: no cover - repr of foreign objects
        rendered = f"<repr-error {exc!r}>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "..."
    return rendered


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that traces calls of the wrapped function at DEBUG."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", func.__name__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            rendered_args = [summarize(arg) for arg in args]
            rendered_args += [f"{key}={summarize(val)}" for key, val in kwargs.items()]
            logger.debug("-> %s(%s)", qualname, ", ".join(rendered_args))
            result = func(*args, **kwargs)
            if log_result:
                logger.debug("<- %s = %s", qualname, summarize(result))
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap the public functions defined in a module namespace with call tracing.

    Private helpers (leading underscore) are left alone; they are called in
    tight loops and would drown the interesting calls.
    """

    module_name = namespace.get("__name__")
    logger = logger or logging.getLogger(module_name if isinstance(module_name, str) else __name__)
    skip_set: Set[str] = set(skip or [])

    for name, value in list(namespace.items()):
        if name.startswith("_") or name in skip_set:
            continue
        if inspect.isfunction(value) and value.__module__ == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)


__all__ = ["apply_debug_logging", "debug_log_call", "summarize"]
