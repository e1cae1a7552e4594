"""Hashable configuration store for image adjustments.

An :class:`AdjustmentConfiguration` holds a tree of plain values (strings,
numbers, booleans, ``None`` and nested mappings) and keeps a content hash
of that tree up to date. Every mutating operation validates first and only
then touches the tree, so a rejected value never leaves a half-applied
change behind.
"""

import copy
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import InvalidAdjustmentConfiguration
from ..utils.hashing import generate_configuration_hash

ConfigPath = Union[str, Sequence[str]]

SCALAR_TYPES = (str, int, float, bool, type(None))


def _split_path(path: ConfigPath) -> List[str]:
    if isinstance(path, str):
        parts = [part for part in path.split(".") if part]
    else:
        parts = [str(part) for part in path]
    if not parts:
        raise InvalidAdjustmentConfiguration("path", path, "Configuration path cannot be empty")
    return parts


def _validate_value(value: Any, field: str) -> Any:
    """Return a detached, validated copy of ``value``."""
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, Mapping):
        validated = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidAdjustmentConfiguration(field, key, "Configuration keys must be strings")
            validated[key] = _validate_value(item, f"{field}.{key}" if field else key)
        return validated
    raise InvalidAdjustmentConfiguration(
        field, value, f"Unsupported configuration value type {type(value).__name__}"
    )


class AdjustmentConfiguration:
    """Configuration tree of an adjustment with a derived content hash."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = _validate_value(dict(values or {}), "")
        self._hash = generate_configuration_hash(self._values)

    @property
    def hash(self) -> str:
        return self._hash

    def _refresh_hash(self) -> None:
        self._hash = generate_configuration_hash(self._values)

    def get(self, path: ConfigPath, default: Any = None) -> Any:
        """Return the value stored at ``path`` or ``default`` if missing."""
        current: Any = self._values
        for part in _split_path(path):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return copy.deepcopy(current)

    def set(self, path: ConfigPath, value: Any) -> None:
        """Store ``value`` at ``path``, creating intermediate mappings.

        Raises:
            InvalidAdjustmentConfiguration: If the value type is unsupported or
                an intermediate path segment holds a scalar
        """
        parts = _split_path(path)
        field = ".".join(parts)
        validated = _validate_value(value, field)

        # Walk once without mutating so a conflict leaves the tree untouched
        current: Any = self._values
        for part in parts[:-1]:
            current = current.get(part) if isinstance(current, dict) else None
            if current is None:
                break
            if not isinstance(current, dict):
                raise InvalidAdjustmentConfiguration(
                    field, value, f'Cannot descend into non-mapping value at "{part}"'
                )

        target = self._values
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = validated
        self._refresh_hash()

    def unset(self, path: ConfigPath) -> None:
        """Remove the value at ``path``; unknown paths are ignored."""
        parts = _split_path(path)
        current: Any = self._values
        for part in parts[:-1]:
            if not isinstance(current, dict) or part not in current:
                return
            current = current[part]
        if isinstance(current, dict) and parts[-1] in current:
            del current[parts[-1]]
            self._refresh_hash()

    def replace(self, values: Mapping[str, Any]) -> None:
        """Swap the whole tree for ``values``."""
        self._values = _validate_value(dict(values), "")
        self._refresh_hash()

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.to_dict().items())

    def __getitem__(self, key: str) -> Any:
        if key not in self._values:
            raise KeyError(key)
        return copy.deepcopy(self._values[key])

    def __setitem__(self, key: str, value: Any) -> None:
        self.set([key], value)

    def __delitem__(self, key: str) -> None:
        if key not in self._values:
            raise KeyError(key)
        self.unset([key])

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AdjustmentConfiguration):
            return NotImplemented
        return self._hash == other._hash

    def __repr__(self) -> str:
        return f"AdjustmentConfiguration({self._values!r}, hash={self._hash[:12]})"
