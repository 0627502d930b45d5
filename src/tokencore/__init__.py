"""Token core package: SHA-2, HMAC, Base64 and compact token signing."""

from importlib import metadata

__all__ = ["__version__"]


try:
    __version__ = metadata.version("tokencore")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"
