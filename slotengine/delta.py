"""Field-wise diff and patch over dataclass records.

A ``RecordDiffer`` is built from a list of field descriptors, one per
top-level field of a dataclass:

  * ``ScalarField``: the whole value is replaced when it changes.
  * ``MapField``: an order-independent mapping; a change records the keys
    to set (added or changed) and the keys to remove.

Each descriptor carries an equality function and JSON codecs for its
values (and keys, for maps), so the same descriptors drive diffing,
patching, and the persisted form of a delta. A delta is a plain dict from
field name to ``ScalarChange`` / ``MapChange``; fields that did not change
are absent. For any records ``a`` and ``b`` of the same type::

    differ.apply(a, differ.diff(a, b)) == b
"""

from __future__ import annotations

import dataclasses
import operator
from dataclasses import dataclass, field
from typing import Any, Callable


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class ScalarChange:
    value: Any


@dataclass(frozen=True)
class MapChange:
    set: dict = field(default_factory=dict)
    remove: tuple = ()


@dataclass(frozen=True)
class ScalarField:
    name: str
    equals: Callable[[Any, Any], bool] = operator.eq
    encode: Callable[[Any], Any] = _identity
    decode: Callable[[Any], Any] = _identity

    def diff(self, old: Any, new: Any) -> ScalarChange | None:
        if self.equals(old, new):
            return None
        return ScalarChange(new)

    def apply(self, base: Any, change: ScalarChange) -> Any:
        return change.value

    def change_to_dict(self, change: ScalarChange) -> dict:
        return {"value": self.encode(change.value)}

    def change_from_dict(self, d: Any) -> ScalarChange:
        if not isinstance(d, dict) or "value" not in d:
            raise ValueError(f"Malformed change for field {self.name!r}")
        return ScalarChange(self.decode(d["value"]))


@dataclass(frozen=True)
class MapField:
    name: str
    equals: Callable[[Any, Any], bool] = operator.eq
    encode: Callable[[Any], Any] = _identity
    decode: Callable[[Any], Any] = _identity
    encode_key: Callable[[Any], str] = str
    decode_key: Callable[[str], Any] = _identity

    def diff(self, old: dict, new: dict) -> MapChange | None:
        to_set = {
            key: value
            for key, value in new.items()
            if key not in old or not self.equals(old[key], value)
        }
        to_remove = tuple(key for key in old if key not in new)
        if not to_set and not to_remove:
            return None
        return MapChange(set=to_set, remove=to_remove)

    def apply(self, base: dict, change: MapChange) -> dict:
        result = {k: v for k, v in base.items() if k not in change.remove}
        result.update(change.set)
        return result

    def change_to_dict(self, change: MapChange) -> dict:
        return {
            "set": {
                self.encode_key(k): self.encode(v)
                for k, v in change.set.items()
            },
            "remove": [self.encode_key(k) for k in change.remove],
        }

    def change_from_dict(self, d: Any) -> MapChange:
        if (
            not isinstance(d, dict)
            or not isinstance(d.get("set", {}), dict)
            or not isinstance(d.get("remove", []), list)
        ):
            raise ValueError(f"Malformed change for field {self.name!r}")
        return MapChange(
            set={
                self.decode_key(k): self.decode(v)
                for k, v in d.get("set", {}).items()
            },
            remove=tuple(self.decode_key(k) for k in d.get("remove", [])),
        )


FieldSpec = ScalarField | MapField
Delta = dict[str, Any]


class RecordDiffer:
    """Diff/patch a dataclass type field by field."""

    def __init__(self, fields: list[FieldSpec]) -> None:
        self.fields = {f.name: f for f in fields}

    def diff(self, old: Any, new: Any) -> Delta:
        delta: Delta = {}
        for name, spec in self.fields.items():
            change = spec.diff(getattr(old, name), getattr(new, name))
            if change is not None:
                delta[name] = change
        return delta

    def apply(self, base: Any, delta: Delta) -> Any:
        changes = {
            name: self.fields[name].apply(getattr(base, name), change)
            for name, change in delta.items()
        }
        return dataclasses.replace(base, **changes)

    def to_dict(self, delta: Delta) -> dict:
        return {
            name: self.fields[name].change_to_dict(change)
            for name, change in delta.items()
        }

    def from_dict(self, d: Any) -> Delta:
        """Decode a persisted delta. Raises ValueError on unknown fields."""
        if not isinstance(d, dict):
            raise ValueError("Delta must be an object")
        delta: Delta = {}
        for name, raw in d.items():
            spec = self.fields.get(name)
            if spec is None:
                raise ValueError(f"Unknown delta field: {name!r}")
            delta[name] = spec.change_from_dict(raw)
        return delta
