"""Settings and logging configuration for the TzKT cache."""

from .logging import configure_logging, log_error
from .settings import CacheSettings, StorageBackend

__all__ = [
    'configure_logging',
    'log_error',
    'CacheSettings',
    'StorageBackend'
]
