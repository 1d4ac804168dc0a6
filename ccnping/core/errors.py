"""
Exception hierarchy for CCNPing.
"""


class CCNPingError(Exception):
    """Base class for all CCNPing errors."""


class ConfigurationError(CCNPingError):
    """Invalid name, option value or configuration file."""


class TransportError(CCNPingError):
    """The transport failed to carry out a request."""


class TransportConnectionError(TransportError):
    """The local forwarder could not be reached."""


class DuplicateProbeError(CCNPingError):
    """A probe was recorded while another with the same name is still pending."""


class ProbeNotFoundError(CCNPingError, KeyError):
    """A reply or timeout arrived for a probe that is not pending."""
