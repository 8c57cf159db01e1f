"""Result-wrapping policy applied after every forwarded operation."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Sequence

from .core import InboundsArray, is_storage


def collect_wrappers(args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> List[InboundsArray]:
    """Return every wrapper found in ``args`` and ``kwargs``, searching nested containers."""

    found: List[InboundsArray] = []
    _collect(args, found)
    if kwargs:
        _collect(kwargs.values(), found)
    return found


def _collect(values: Iterable[Any], found: List[InboundsArray]) -> None:
    for value in values:
        if isinstance(value, InboundsArray):
            found.append(value)
        elif isinstance(value, (tuple, list)):
            _collect(value, found)
        elif isinstance(value, Mapping):
            _collect(value.values(), found)


def wrap_result(value: Any, inputs: Sequence[InboundsArray] = ()) -> Any:
    """Wrap storage-valued parts of ``value``.

    * a result that *is* the parent of one of ``inputs`` comes back as that
      same wrapper, so in-place operations keep their identity;
    * storage (dense or sparse arrays) is wrapped;
    * tuples, named tuples and lists are processed element by element;
    * scalars, handles such as factorizations or plans, and anything else
      pass through untouched.
    """

    if isinstance(value, InboundsArray):
        return value
    for candidate in inputs:
        if candidate.parent is value:
            return candidate
    if is_storage(value):
        return InboundsArray._from_storage(value)
    if isinstance(value, tuple):
        items = [wrap_result(item, inputs) for item in value]
        if hasattr(value, "_make"):
            return value._make(items)
        return tuple(items)
    if isinstance(value, list):
        return [wrap_result(item, inputs) for item in value]
    return value


def rewrap(value: Any, wrappers: Sequence[InboundsArray]) -> Any:
    """Apply :func:`wrap_result` only when a wrapper took part in the call."""

    if not wrappers:
        return value
    return wrap_result(value, wrappers)
