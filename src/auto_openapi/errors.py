"""Exceptions raised at the configuration and output boundaries.

Per-route and per-schema problems never raise out of the core pipeline;
only the cases below halt generation.
"""


class AutoOpenApiError(Exception):
    """Base class for all auto-openapi errors."""


class UnsupportedFormatError(AutoOpenApiError):
    """The requested output format is neither JSON nor YAML."""

    def __init__(self, fmt: str):
        super().__init__(f"Unsupported format: {fmt}")
        self.format = fmt


class ConfigError(AutoOpenApiError):
    """The configuration file is unreadable or invalid."""


class RouteTableError(AutoOpenApiError):
    """The route table could not be imported or is malformed."""
