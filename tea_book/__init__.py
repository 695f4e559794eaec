from __future__ import annotations

from .classify import TeaBuckets, classify_teas
from .config import load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import (
    ConfigError,
    ExportError,
    SchemaViolation,
    TemplateMarkerMissing,
    TransportFailure,
    UnsupportedBlockType,
)
from .normalize import tea_from_page, tea_from_row
from .pagination import Page, iterate_paginated
from .pipeline import build_book, inventory
from .tea import Tea

__all__ = [
    "AppConfig",
    "ConfigError",
    "ExportError",
    "Page",
    "SchemaViolation",
    "Tea",
    "TeaBuckets",
    "TemplateMarkerMissing",
    "TransportFailure",
    "UnsupportedBlockType",
    "build_book",
    "classify_teas",
    "inventory",
    "iterate_paginated",
    "load_config",
    "resolve_runtime_secrets",
    "tea_from_page",
    "tea_from_row",
]
