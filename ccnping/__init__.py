"""
CCNPing - connectivity diagnostics for content-centric networks

A ping client that sends uniquely-numbered Interests towards a name prefix and
reports round-trip time and loss, and a ping server that answers those
Interests with a small acknowledgment Data packet.
"""

__version__ = "1.0.0"
__author__ = "CCNPing Authors"
__license__ = "GPL-2.0-or-later"

from .core.config import Config
from .core.logger import setup_logging
from .core.name import Name

__all__ = ["Config", "Name", "setup_logging"]
