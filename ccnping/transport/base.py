"""
Transport interface between the ping logic and the local forwarder.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..core.name import Name


class ReplyKind(Enum):
    CONTENT = "content"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Response:
    """A Data packet: name, content and an optional freshness in seconds."""
    name: Name
    content: bytes
    freshness: Optional[int] = None


# callback(kind, interest_name, response); response is None on timeout
ReplyCallback = Callable[[ReplyKind, Name, Optional[Response]], None]
RequestCallback = Callable[[Name], None]


class Transport(ABC):
    """Carries Interests and Data to and from the forwarder.

    Callbacks are invoked from inside :meth:`run_loop_step` on the calling
    thread. Interest lifetimes are enforced here, not by the caller.
    """

    def connect(self) -> None:
        """Connect to the forwarder; raises TransportConnectionError."""

    @abstractmethod
    def express_request(self, name: Name, callback: ReplyCallback,
                        answer_origin_new: bool = False,
                        lifetime: Optional[float] = None) -> int:
        """Send an Interest. Returns a negative value on failure."""
        raise NotImplementedError

    @abstractmethod
    def register_responder(self, prefix: Name, callback: RequestCallback) -> int:
        """Deliver every Interest under ``prefix`` to ``callback``."""
        raise NotImplementedError

    @abstractmethod
    def publish_response(self, response: Response) -> int:
        """Satisfy pending Interests for ``response.name``."""
        raise NotImplementedError

    @abstractmethod
    def run_loop_step(self, timeout_ms: int) -> int:
        """Process pending I/O for up to ``timeout_ms``; negative on fatal error."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "Transport":
        self.connect()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
