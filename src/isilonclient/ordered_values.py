"""Query parameters that keep the order the caller gave them.

The OneFS API treats some query parameters as flags (``?acl``, ``?metadata``)
and is sensitive to repeated keys, so a plain dict is not enough.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

ParamValue = Union[bytes, str, None]


def _to_text(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class OrderedValues(List[Tuple[str, ParamValue]]):
    """An ordered list of ``(key, value)`` query parameters.

    Duplicate keys are allowed and are encoded in insertion order. A value of
    ``None`` encodes as the bare key.

    >>> params = OrderedValues([("k1", b"v1"), ("k1", b"v2"), ("k2", b"v3")])
    >>> params.encode()
    'k1=v1&k1=v2&k2=v3'
    """

    def __init__(
        self,
        pairs: Union[Iterable[Tuple[str, ParamValue]], Mapping[str, ParamValue], None] = None,
    ):
        super().__init__()
        if pairs is None:
            return
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        for key, value in pairs:
            self.add(key, value)

    @classmethod
    def from_pairs(cls, *pairs: Tuple[str, ParamValue]) -> "OrderedValues":
        return cls(pairs)

    def add(self, key: str, value: ParamValue = None) -> None:
        """Append a value for ``key``, keeping any existing values."""
        self.append((_to_text(key), value))

    def set(self, key: str, value: ParamValue = None) -> None:
        """Replace every value for ``key`` with ``value``.

        The new pair takes the position of the first existing pair for the key,
        or is appended if the key is not present.
        """
        key = _to_text(key)
        for index, (existing, _) in enumerate(self):
            if existing == key:
                self[index] = (key, value)
                self[index + 1 :] = [pair for pair in self[index + 1 :] if pair[0] != key]
                return
        self.append((key, value))

    def get(self, key: str) -> Optional[ParamValue]:
        """Return the first value for ``key``, or None."""
        for existing, value in self:
            if existing == key:
                return value
        return None

    def get_all(self, key: str) -> List[ParamValue]:
        return [value for existing, value in self if existing == key]

    def delete(self, key: str) -> None:
        self[:] = [pair for pair in self if pair[0] != key]

    def keys(self) -> Iterator[str]:
        return (key for key, _ in self)

    def encode(self) -> str:
        """Encode as a query string, percent-encoding keys and values.

        Returns:
            str: ``key=value`` pairs joined with ``&`` in insertion order.
        """
        parts = []
        for key, value in self:
            encoded_key = quote(key, safe="")
            if value is None:
                parts.append(encoded_key)
            else:
                text = value if isinstance(value, (bytes, str)) else str(value)
                parts.append(f"{encoded_key}={quote(text, safe='')}")
        return "&".join(parts)

    def __str__(self) -> str:
        return self.encode()
