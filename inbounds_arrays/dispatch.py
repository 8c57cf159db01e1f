"""Forwarding rules and the forwarder that applies them.

A rule binds an operation to a *pattern*: a tuple of types matched
positionally, with :func:`issubclass`, against the types of the unwrapped
positional arguments.  ``object`` matches anything and positions beyond the
end of a pattern are treated as ``object``.  Among the applicable rules the one
whose pattern is pointwise most specific wins.  Two rules whose patterns
overlap without either being more specific need a third rule for the overlap;
the registry rejects any registration or removal that would leave it uncovered.

Operations are identified by NumPy functions, ufuncs (``(ufunc, method)`` for
methods other than ``__call__``) or plain strings for operations NumPy has no
function for, such as ``"lu"`` or ``"similar"``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Mapping, Sequence, Tuple

import numpy as np

from . import policy as _policy
from .core import InboundsArray, structural_array, unwrap_all
from .errors import AmbiguousRuleError, NoMatchingRuleError, op_name
from .settings import CapabilityMode, get_capability_mode

LOGGER = logging.getLogger(__name__)

Pattern = Tuple[type, ...]


def _padded(pattern: Pattern, length: int) -> Pattern:
    return tuple(pattern) + (object,) * (length - len(pattern))


def _same(a: Pattern, b: Pattern) -> bool:
    length = max(len(a), len(b))
    return _padded(a, length) == _padded(b, length)


def _at_least_as_specific(a: Pattern, b: Pattern) -> bool:
    length = max(len(a), len(b))
    return all(issubclass(x, y) for x, y in zip(_padded(a, length), _padded(b, length)))


def _dominates(a: Pattern, b: Pattern) -> bool:
    return _at_least_as_specific(a, b) and not _same(a, b)


def _meet(a: Pattern, b: Pattern) -> Pattern | None:
    """Pointwise most specific pattern of ``a`` and ``b``, ``None`` when disjoint."""

    length = max(len(a), len(b))
    meet = []
    for x, y in zip(_padded(a, length), _padded(b, length)):
        if issubclass(x, y):
            meet.append(x)
        elif issubclass(y, x):
            meet.append(y)
        else:
            return None
    return tuple(meet)


@dataclass(frozen=True)
class ForwardingRule:
    op: Hashable
    pattern: Pattern
    func: Callable[..., Any]
    rewrap: bool = True

    def applies(self, types: Sequence[type]) -> bool:
        if len(types) < len(self.pattern):
            return False
        return all(issubclass(tp, expected) for tp, expected in zip(types, self.pattern))

    def more_specific_than(self, other: "ForwardingRule") -> bool:
        return _dominates(self.pattern, other.pattern)


def _uncovered_overlap(
    a: ForwardingRule, b: ForwardingRule, rules: Sequence[ForwardingRule]
) -> Pattern | None:
    """The overlap of ``a`` and ``b`` when no rule in ``rules`` decides it."""

    if a is b or a.more_specific_than(b) or b.more_specific_than(a):
        return None
    meet = _meet(a.pattern, b.pattern)
    if meet is None or any(_same(candidate.pattern, meet) for candidate in rules):
        return None
    return meet


class RuleRegistry:
    """Mutable table of forwarding rules with a per-signature resolution cache."""

    def __init__(self) -> None:
        self._rules: Dict[Hashable, List[ForwardingRule]] = {}
        self._cache: Dict[Tuple[Hashable, Tuple[type, ...]], ForwardingRule | None] = {}
        self._lock = threading.RLock()
        self._generation = 0

    def add(self, rule: ForwardingRule, *, override: bool = False) -> ForwardingRule:
        with self._lock:
            existing = self._rules.setdefault(rule.op, [])
            for index, other in enumerate(existing):
                if _same(other.pattern, rule.pattern):
                    if not override:
                        raise AmbiguousRuleError(rule.op, [other.pattern, rule.pattern])
                    existing[index] = rule
                    break
            else:
                self._check_overlaps(rule, existing)
                existing.append(rule)
            self._cache.clear()
            self._generation += 1
        LOGGER.debug("Registered rule %s%s", op_name(rule.op), rule.pattern)
        return rule

    def _check_overlaps(self, rule: ForwardingRule, existing: Sequence[ForwardingRule]) -> None:
        for other in existing:
            meet = _uncovered_overlap(rule, other, existing)
            if meet is not None:
                LOGGER.error(
                    "Rules %s%s and %s%s overlap on %s without either being more specific",
                    op_name(rule.op),
                    rule.pattern,
                    op_name(other.op),
                    other.pattern,
                    meet,
                )
                raise AmbiguousRuleError(rule.op, [other.pattern, rule.pattern])

    def register(self, op: Hashable, *pattern: type, rewrap: bool = True, override: bool = False):
        """Decorator form of :meth:`add`."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add(ForwardingRule(op, tuple(pattern), func, rewrap), override=override)
            return func

        return decorator

    def unregister(self, op: Hashable, *pattern: type) -> ForwardingRule:
        with self._lock:
            rules = self._rules.get(op, [])
            for index, rule in enumerate(rules):
                if _same(rule.pattern, pattern):
                    remaining = rules[:index] + rules[index + 1 :]
                    for position, first in enumerate(remaining):
                        for second in remaining[position + 1 :]:
                            if _uncovered_overlap(first, second, remaining) is not None:
                                raise AmbiguousRuleError(op, [first.pattern, second.pattern])
                    del rules[index]
                    if not rules:
                        del self._rules[op]
                    self._cache.clear()
                    self._generation += 1
                    return rule
        raise KeyError(f"no rule for {op_name(op)}{tuple(pattern)}")

    def rules_for(self, op: Hashable) -> Tuple[ForwardingRule, ...]:
        return tuple(self._rules.get(op, ()))

    def ops(self) -> Tuple[Hashable, ...]:
        return tuple(self._rules)

    def __contains__(self, op: Hashable) -> bool:
        return op in self._rules

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def resolve(self, op: Hashable, types: Tuple[type, ...]) -> ForwardingRule | None:
        """Return the most specific rule for ``types`` or ``None`` when nothing applies."""

        key = (op, types)
        try:
            return self._cache[key]
        except KeyError:
            pass
        with self._lock:
            generation = self._generation
            candidates = [rule for rule in tuple(self._rules.get(op, ())) if rule.applies(types)]
            if not candidates:
                best = None
            else:
                maximal = [
                    rule
                    for rule in candidates
                    if not any(other.more_specific_than(rule) for other in candidates if other is not rule)
                ]
                if len(maximal) > 1:
                    raise AmbiguousRuleError(op, [rule.pattern for rule in maximal])
                best = maximal[0]
            # issubclass hooks may register rules while the candidates are computed
            if generation == self._generation:
                self._cache[key] = best
        return best


REGISTRY = RuleRegistry()


def rule(op: Hashable, *pattern: type, rewrap: bool = True, override: bool = False):
    """Register a rule on the process-wide registry.

    Example::

        @rule("lu", MyStorage)
        def _lu_mystorage(a):
            return MyFactorization(a)
    """

    return REGISTRY.register(op, *pattern, rewrap=rewrap, override=override)


def unregister(op: Hashable, *pattern: type) -> ForwardingRule:
    return REGISTRY.unregister(op, *pattern)


def _structural_all(value: Any) -> Any:
    if isinstance(value, InboundsArray):
        return structural_array(value.parent)
    if isinstance(value, Mapping):
        return {key: _structural_all(val) for key, val in value.items()}
    if isinstance(value, tuple):
        return tuple(_structural_all(item) for item in value)
    if isinstance(value, list):
        return [_structural_all(item) for item in value]
    return value


def _output_wrappers(kwargs: Mapping[str, Any]) -> List[InboundsArray]:
    out = kwargs.get("out")
    targets = out if isinstance(out, tuple) else (out,)
    return [target for target in targets if isinstance(target, InboundsArray)]


def signature_of(args: Sequence[Any]) -> Tuple[type, ...]:
    return tuple(type(arg.parent) if isinstance(arg, InboundsArray) else type(arg) for arg in args)


def forward(
    op: Hashable,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
    *,
    impl: Callable[..., Any] | None = None,
    registry: RuleRegistry | None = None,
) -> Any:
    """Run ``op`` on unwrapped arguments and re-wrap the result.

    The most specific registered rule is used when one applies.  Otherwise, in
    structural mode, wrappers are converted to dense arrays and ``impl`` (or
    ``op`` itself when callable) runs as the generic implementation.  In
    explicit mode a missing rule raises :class:`NoMatchingRuleError`.  Calls
    without any wrapper argument never depend on the mode.
    """

    kwargs = {} if kwargs is None else kwargs
    table = REGISTRY if registry is None else registry
    types = signature_of(args)
    wrappers = _policy.collect_wrappers(args, kwargs)

    found = table.resolve(op, types)
    if found is not None:
        result = found.func(*unwrap_all(tuple(args)), **unwrap_all(kwargs))
        if not found.rewrap:
            return result
        return _policy.rewrap(result, wrappers)

    if impl is None and callable(op):
        impl = op
    if not wrappers and impl is not None:
        return impl(*args, **kwargs)
    if get_capability_mode() is CapabilityMode.EXPLICIT:
        raise NoMatchingRuleError(op, types, "explicit capability mode requires a registered rule")
    if impl is None:
        raise NoMatchingRuleError(op, types, "no generic implementation exists")
    if any(not isinstance(target.parent, np.ndarray) for target in _output_wrappers(kwargs)):
        raise NoMatchingRuleError(
            op, types, "the generic implementation cannot write into non-dense output storage"
        )
    LOGGER.debug("No rule for %s%s; using the generic implementation", op_name(op), types)
    result = impl(*_structural_all(tuple(args)), **_structural_all(kwargs))
    return _policy.rewrap(result, wrappers)
