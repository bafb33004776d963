"""Exception types raised by qshare."""
from __future__ import annotations


class QshareError(Exception):
    """Base class for every error raised by the package."""


class ConfigError(QshareError):
    """Required configuration (e.g. the cache root) is missing or invalid."""


class TransportError(QshareError):
    """The HTTP request could not be completed."""


class ParseError(QshareError, ValueError):
    """A response body does not match the provider's expected shape."""


class CacheReadError(QshareError):
    """A cached snapshot is missing, unreadable or does not match its schema."""


class CacheWriteError(QshareError):
    """A snapshot could not be written to the cache directory."""
