"""
A single proof - one set of variable bindings returned by a query
"""

import copy
import json
import math
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .exceptions import FormatError, UnboundVariableError


class Proof:
    """Read-only view over one answer from the server.

    Keys are Prolog variable names (uppercase first letter by convention),
    values are the JSON-decoded terms they are bound to.
    """

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Dict[str, Any]):
        self._bindings = MappingProxyType(copy.deepcopy(dict(bindings)))

    @property
    def values(self) -> Mapping[str, Any]:
        """All bindings as a read-only mapping"""
        return self._bindings

    def value_of(self, name: str) -> Any:
        """The value bound to a variable"""
        try:
            return self._bindings[name]
        except KeyError:
            raise UnboundVariableError(
                f"Variable '{name}' is not bound in this proof"
            ) from None

    def as_string(self, name: str) -> str:
        """Strings as-is, any other term rendered as JSON"""
        value = self.value_of(name)
        if isinstance(value, str):
            return value
        return json.dumps(value)

    def as_int(self, name: str) -> int:
        """Exact integer; fractional values are an error"""
        value = self.value_of(name)
        if _is_number(value):
            if isinstance(value, int):
                return value
            if math.isfinite(value) and value.is_integer():
                return int(value)
            raise FormatError(name, "int", value)
        try:
            return int(self.as_string(name).strip())
        except ValueError:
            raise FormatError(name, "int", value) from None

    def as_nearest_int(self, name: str) -> int:
        """Integer truncated toward zero, accepting fractional values"""
        value = self.value_of(name)
        try:
            number = value if _is_number(value) else float(self.as_string(name))
            return int(number)
        except (ValueError, OverflowError):
            raise FormatError(name, "int", value) from None

    def as_double(self, name: str) -> float:
        value = self.value_of(name)
        if _is_number(value):
            return float(value)
        try:
            return float(self.as_string(name))
        except ValueError:
            raise FormatError(name, "float", value) from None

    def __getitem__(self, name: str) -> Any:
        return self.value_of(name)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Proof):
            return NotImplemented
        return dict(self._bindings) == dict(other._bindings)

    __hash__ = None

    def __str__(self) -> str:
        return json.dumps(dict(self._bindings))

    def __repr__(self) -> str:
        return f"Proof({dict(self._bindings)!r})"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
