from .base import ReplyKind, Response, Transport

__all__ = ["ReplyKind", "Response", "Transport"]
