"""
Converters between plan representations.

- order_codec: order marker ("A1") -> integer sort key
"""

from domain.converters.order_codec import encode, sort_key

__all__ = ["encode", "sort_key"]
