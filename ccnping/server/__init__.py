from .responder import PING_ACK, build_ack
from .server import PingServer
from .validator import is_valid_probe

__all__ = ["PING_ACK", "PingServer", "build_ack", "is_valid_probe"]
