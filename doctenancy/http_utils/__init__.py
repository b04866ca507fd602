"""HTTP helpers. Middleware wiring lives in :mod:`doctenancy.http_utils.setup`."""

from .netutils import get_ip_from_xff_depth

__all__ = ["get_ip_from_xff_depth"]
