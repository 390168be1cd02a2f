"""Core framework components."""

from .base_widget import BaseWidget, TimerScheduler, WidgetElement
from .cache import CacheStore, FileCache, MemoryCache, create_cache
from .config import CacheConfig, DaoConfig, DaoOptions, DashboardConfig, WidgetConfig
from .dao import AbstractDao
from .parsers import ResponseFormat

__all__ = [
    "BaseWidget",
    "TimerScheduler",
    "WidgetElement",
    "CacheStore",
    "FileCache",
    "MemoryCache",
    "create_cache",
    "CacheConfig",
    "DaoConfig",
    "DaoOptions",
    "DashboardConfig",
    "WidgetConfig",
    "AbstractDao",
    "ResponseFormat",
]
