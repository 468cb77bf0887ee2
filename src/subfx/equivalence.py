"""Equivalence engine: deep structural equality with circularity checks.

Used by the state-update effect to decide whether a recomputed root
subscriber value actually changed. Comparison falls through a fixed
sequence of checks, cheapest first:

    identity -> kind -> numbers -> functions -> flat values -> dates
    -> containers (sequences, sets, mappings, plain objects)

Containers may be circular. Only the left-hand value is tracked: if it is
acyclic, any mismatch with the right-hand value surfaces through normal
comparison. A left-hand value that contains itself raises
CircularValueError instead of getting a guessed verdict.

Known approximations:
- Functions compare by source text, so closures with the same source but
  different captured state are equivalent.
- Sets match each element of value1 to an unused equivalent element of
  value2, so the result never depends on hash order. This is quadratic in
  the set size.
"""

from __future__ import annotations

import datetime
import enum
import inspect
import numbers
import types
from collections.abc import Mapping

from subfx._anchor import Identifier
from subfx.errors import CircularValueError

_FUNCTION_TYPES = (types.FunctionType, types.MethodType, types.BuiltinFunctionType)
_FLAT_TYPES = (bool, type(None), enum.Enum, Identifier)
_TEXT_TYPES = (str, bytes, bytearray)
_DATE_TYPES = (datetime.date, datetime.time)
_SEQUENCE_TYPES = (list, tuple)
_SET_TYPES = (set, frozenset)


def are_equivalent(value1: object, value2: object) -> bool:
    """True if both values are structurally the same.

    Raises CircularValueError if value1 directly or indirectly contains
    itself (unless both arguments are the very same object).

    Usage:
        are_equivalent({"a": [1, 2]}, {"a": [1, 2]})  # True
        are_equivalent([1, 2], [2, 1])                # False
        are_equivalent(float("nan"), float("nan"))    # True
    """
    return _are_equivalent(value1, value2, [])


def _kind(value: object) -> type:
    # Every non-bool number shares one kind, like a single dynamic number type.
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return numbers.Number
    return type(value)


def _is_nan(value: object) -> bool:
    return value != value


def _function_source(fn) -> str:
    try:
        return inspect.getsource(fn).strip()
    except (OSError, TypeError):
        # Builtins and functions compiled without a source file.
        return repr(fn)


def _is_container(value: object) -> bool:
    if isinstance(value, (_SEQUENCE_TYPES, _SET_TYPES, Mapping)):
        return True
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")


def _own_attributes(obj: object) -> dict:
    attributes = dict(getattr(obj, "__dict__", {}))
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__") or name in attributes:
                continue
            try:
                attributes[name] = getattr(obj, name)
            except AttributeError:
                continue  # declared but never assigned
    return attributes


def _on_stack(value: object, stack: list) -> bool:
    return any(item is value for item in stack)


def _are_equivalent(value1: object, value2: object, stack: list) -> bool:
    # Same instance, including singletons like None, True and Identifiers.
    if value1 is value2:
        return True

    kind = _kind(value1)
    if kind is not _kind(value2):
        return False

    if kind is numbers.Number:
        # Could still both be NaN
        return value1 == value2 or (_is_nan(value1) and _is_nan(value2))

    if isinstance(value1, _FUNCTION_TYPES):
        return _function_source(value1) == _function_source(value2)

    if isinstance(value1, _FLAT_TYPES):
        # Singletons and tokens: identity already failed.
        return False

    if isinstance(value1, _TEXT_TYPES):
        return value1 == value2

    if isinstance(value1, _DATE_TYPES):
        # Aware datetimes in different zones compare by instant.
        return value1 == value2

    if not _is_container(value1):
        # Other scalars (timedelta, C-level value types, ...) compare by value.
        return value1 == value2

    # Reference type from here on, and possibly circular.
    if _on_stack(value1, stack):
        raise CircularValueError("are_equivalent: value1 is circular")

    stack.append(value1)
    try:
        return _containers_equivalent(value1, value2, stack)
    finally:
        stack.pop()


def _containers_equivalent(value1, value2, stack: list) -> bool:
    if isinstance(value1, _SEQUENCE_TYPES):
        if len(value1) != len(value2):
            return False
        return all(
            _are_equivalent(item1, item2, stack) for item1, item2 in zip(value1, value2)
        )

    if isinstance(value1, _SET_TYPES):
        if len(value1) != len(value2):
            return False
        # Each element of value1 claims one equivalent, unclaimed element of value2.
        unmatched = list(value2)
        for item1 in value1:
            for index, item2 in enumerate(unmatched):
                if _are_equivalent(item1, item2, stack):
                    del unmatched[index]
                    break
            else:
                return False
        return True

    if isinstance(value1, Mapping):
        mapping1, mapping2 = value1, value2
    else:
        mapping1, mapping2 = _own_attributes(value1), _own_attributes(value2)

    # Key sets must match exactly before any value is compared.
    if len(mapping1) != len(mapping2) or mapping1.keys() != mapping2.keys():
        return False
    return all(_are_equivalent(mapping1[key], mapping2[key], stack) for key in mapping1)
