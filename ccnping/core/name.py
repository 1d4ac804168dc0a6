"""
CCN name handling for CCNPing.

Names are immutable sequences of byte-string components written in URI form,
e.g. ``ccnx:/example/site/ping/42``.
"""

from typing import Iterable, Iterator, Tuple, Union
from urllib.parse import quote_from_bytes, unquote_to_bytes

from .errors import ConfigurationError

SCHEME = "ccnx:"

Component = Union[str, bytes]


class Name:
    """An immutable CCN name."""

    __slots__ = ("_components",)

    def __init__(self, components: Iterable[Component] = ()):
        self._components: Tuple[bytes, ...] = tuple(
            c.encode("utf-8") if isinstance(c, str) else bytes(c) for c in components
        )

    @classmethod
    def from_uri(cls, uri: str) -> "Name":
        """Parse a ``ccnx:/a/b`` style URI; the scheme is optional."""
        text = uri.strip()
        if text[:len(SCHEME)].lower() == SCHEME:
            text = text[len(SCHEME):]
        if not text.startswith("/"):
            raise ConfigurationError(f"bad ccn URI: {uri}")
        # Query and fragment parts carry no name components.
        for sep in ("?", "#"):
            text = text.split(sep, 1)[0]
        parts = [p for p in text.split("/") if p]
        return cls(unquote_to_bytes(p) for p in parts)

    def append(self, component: Component) -> "Name":
        return Name(self._components + (component,))

    @property
    def components(self) -> Tuple[bytes, ...]:
        return self._components

    def is_prefix_of(self, other: "Name") -> bool:
        n = len(self._components)
        return n <= len(other) and other.components[:n] == self._components

    def to_uri(self) -> str:
        if not self._components:
            return SCHEME + "/"
        return SCHEME + "".join("/" + quote_from_bytes(c, safe="") for c in self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._components)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Name(self._components[index])
        return self._components[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return self._components == other._components

    def __hash__(self) -> int:
        return hash(self._components)

    def __str__(self) -> str:
        return self.to_uri()

    def __repr__(self) -> str:
        return f"Name({self.to_uri()!r})"
