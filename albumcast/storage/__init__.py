"""Object storage access."""

from .prober import ObjectProber, S3ObjectProber

__all__ = ["ObjectProber", "S3ObjectProber"]
