"""Common utilities for the Sahha auth probe."""

from sahha_probe.common.config import (
    Config,
    get_application_credentials,
    get_client_credentials,
    get_config,
    reset_config,
)

__all__ = [
    "Config",
    "get_config",
    "reset_config",
    "get_client_credentials",
    "get_application_credentials",
]
