"""
Ping Interest validation.
"""

from ..core.name import Name


def is_valid_probe(request_name: Name, ping_prefix: Name) -> bool:
    """Check that ``request_name`` is ``<ping_prefix>/<number>``.

    The number must be a non-empty run of ASCII decimal digits; leading
    zeros are fine, signs and anything else are not.
    """
    if len(request_name) != len(ping_prefix) + 1:
        return False
    if not ping_prefix.is_prefix_of(request_name):
        return False
    leaf = request_name[-1]
    return bool(leaf) and leaf.isdigit()
