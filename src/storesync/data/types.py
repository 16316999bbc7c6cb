"""Remote record and page request models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

ItemId = Union[int, str]

_ID_KEYS = ("id", "Id")
_PRICE_KEYS = ("price", "Price")
_MODIFIED_KEYS = ("modifiedDate", "ModifiedDate")


def _first(payload: Mapping[str, Any], keys) -> Any:
    for k in keys:
        if k in payload:
            return payload[k]
    return None


@dataclass(frozen=True)
class Item:
    """One remote record. Identity is `id`; `price` orders the extremal item."""

    id: ItemId
    price: float
    modified_date: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def name(self) -> Optional[str]:
        v = self.extra.get("name", self.extra.get("Name"))
        return None if v is None else str(v)

    @classmethod
    def from_json(cls, payload: Any) -> "Item":
        """Build an Item from a decoded JSON object.

        Raises ValueError when the payload is not an object, has no id, or
        carries a price that is not numeric.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"item must be a JSON object, got {type(payload).__name__}")
        item_id = _first(payload, _ID_KEYS)
        if item_id is None or isinstance(item_id, (bool, float, list, dict)):
            raise ValueError(f"item has no usable id: {payload!r}")
        raw_price = _first(payload, _PRICE_KEYS)
        if raw_price is None or isinstance(raw_price, bool):
            raise ValueError(f"item {item_id!r} has no numeric price")
        try:
            price = float(raw_price)
        except (TypeError, ValueError) as e:
            raise ValueError(f"item {item_id!r} has non-numeric price {raw_price!r}") from e
        modified = _first(payload, _MODIFIED_KEYS)
        known = set(_ID_KEYS + _PRICE_KEYS + _MODIFIED_KEYS)
        extra = {k: v for k, v in payload.items() if k not in known}
        return cls(
            id=item_id,
            price=price,
            modified_date=None if modified is None else str(modified),
            extra=extra,
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["price"] = self.price
        if self.modified_date is not None:
            out["modifiedDate"] = self.modified_date
        return out


@dataclass(frozen=True)
class PageRequest:
    """A (skip, take) slice of the remote collection."""

    skip: int = 0
    take: int = 10

    def __post_init__(self) -> None:
        if self.skip < 0:
            raise ValueError(f"skip must be >= 0, got {self.skip}")
        if self.take <= 0:
            raise ValueError(f"take must be > 0, got {self.take}")
