"""Signal-aware HTTP helpers."""

from resilify.http.client import resilient_request

__all__ = ["resilient_request"]
