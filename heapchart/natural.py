"""Natural ordering for library and floor names.

Whole numbers inside a string compare as numbers, so "Floor 2" comes before
"Floor 10".  Every comparator here is a plain cmp-style function returning -1,
0 or 1; use :func:`natsorted` (or :func:`functools.cmp_to_key`) to sort with
one.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import cmp_to_key
from itertools import zip_longest
from typing import Any, Callable, Iterable, Optional, Protocol, Union


class Named(Protocol):
    name: Optional[str]


class FloorLike(Named, Protocol):
    order: Optional[int]
    library: Optional[Named]


@dataclass(frozen=True)
class Digits:
    """A whole run of decimal digits, compared as a number.

    Held as text without leading zeros, so runs of any length compare without
    converting to int.
    """

    digits: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "digits", self.digits.lstrip("0") or "0")

    @property
    def key(self) -> tuple[int, str]:
        # Without leading zeros, a longer run is a bigger number.
        return len(self.digits), self.digits

    def __str__(self) -> str:
        return self.digits


@dataclass(frozen=True)
class Char:
    """Any single non-digit character."""

    value: str

    def __str__(self) -> str:
        return self.value


Token = Union[Digits, Char]

_TOKEN_RE = re.compile(r"(?P<digits>[0-9]+)|(?P<char>[^0-9])")


def _sign(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def tokenize(s: str) -> tuple[Token, ...]:
    """Split a string into digit runs and single characters ("a10" -> a, 10)."""
    return tuple(
        Digits(m.group("digits")) if m.group("digits") else Char(m.group("char"))
        for m in _TOKEN_RE.finditer(s)
    )


def compare_tokens(left: Optional[Token], right: Optional[Token]) -> int:
    # Absent means the other sequence is longer: shorter comes first.
    if left is None or right is None:
        return _sign(left is not None, right is not None)

    # Numbers come before letters.
    if isinstance(left, Digits):
        return _sign(left.key, right.key) if isinstance(right, Digits) else -1
    if isinstance(right, Digits):
        return 1

    a, b = left.value, right.value
    if a.lower() == b.lower():
        # Same letter, different case: capitals first, 'A' before 'a'.
        return _sign(a, b)
    # Different letters compare caselessly so 'Z' doesn't come before 'a'.
    return _sign(a.lower(), b.lower())


def compare_strings(left: Optional[str], right: Optional[str]) -> int:
    """Natural comparison of two optional strings; ``None`` sinks to the end."""
    if left is None or right is None:
        return _sign(left is None, right is None)
    assert isinstance(left, str) and isinstance(right, str), (left, right)

    for a, b in zip_longest(tokenize(left), tokenize(right)):
        result = compare_tokens(a, b)
        if result:
            return result
    return 0


def compare_names(left: Named, right: Named) -> int:
    return compare_strings(left.name, right.name)


def _library_name(floor: FloorLike) -> Optional[str]:
    library = floor.library
    return library.name if library is not None else None


def _order(floor: FloorLike) -> float:
    order = floor.order
    if order is None:
        # Unordered floors sink to the bottom of their library.
        return math.inf
    assert isinstance(order, int) and not isinstance(order, bool), order
    return order


def compare_floors(left: FloorLike, right: FloorLike) -> int:
    """Group floors by library name, then by order number, then by name."""
    result = compare_strings(_library_name(left), _library_name(right))
    if result:
        return result

    result = _sign(_order(left), _order(right))
    if result:
        return result

    return compare_names(left, right)


Comparator = Callable[[Any, Any], int]

COMPARATORS: dict[str, Comparator] = {
    "strings": compare_strings,
    "names": compare_names,
    "floors": compare_floors,
}


def natsorted(items: Iterable[Any], comparator: Union[str, Comparator] = "names") -> list[Any]:
    """Return ``items`` as a new list sorted by a comparator or its name in COMPARATORS."""
    if isinstance(comparator, str):
        comparator = COMPARATORS[comparator]
    return sorted(items, key=cmp_to_key(comparator))
