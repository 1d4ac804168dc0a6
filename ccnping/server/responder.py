"""
Ping acknowledgment construction.
"""

from ..core.name import Name
from ..transport.base import Response

PING_ACK = b"ping ack"


def build_ack(request_name: Name, freshness: int) -> Response:
    """Answer ``request_name`` with the fixed acknowledgment.

    The Data carries the Interest name unchanged. A negative ``freshness``
    leaves the freshness unset so the forwarder's default applies.
    """
    return Response(
        name=request_name,
        content=PING_ACK,
        freshness=freshness if freshness >= 0 else None,
    )
