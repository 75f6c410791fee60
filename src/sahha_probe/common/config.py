"""
Configuration management for the Sahha auth probe.

Loads and validates configuration from config.yaml (or environment variables as fallback).
"""
from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Load .env file if it exists (for local development)
load_dotenv()

# Default configuration
DEFAULT_CONFIG = {
    'api': {
        'sahha': {
            'production_url': 'https://api.sahha.ai',
            'sandbox_url': 'https://sandbox-api.sahha.ai',
            'timeout_seconds': 30,
        }
    },
    'sample': {
        'profile_id': 'SampleProfile-f106b5e0-4103-41d0-af6e-384f125dbf28',
        'start_date': '2025-07-05',
        'end_date': '2025-07-11',
    },
}

# Environment variable -> dot path
ENV_OVERRIDES = {
    'SAHHA_CLIENT_ID': 'api.sahha.client_id',
    'SAHHA_CLIENT_SECRET': 'api.sahha.client_secret',
    'SAHHA_APPLICATION_ID': 'api.sahha.application_id',
    'SAHHA_APPLICATION_SECRET': 'api.sahha.application_secret',
    'SAHHA_PRODUCTION_URL': 'api.sahha.production_url',
    'SAHHA_SANDBOX_URL': 'api.sahha.sandbox_url',
}

SECRET_KEYS = ('client_secret', 'application_secret')


class Config:
    """
    Configuration singleton for the probe.

    Loads configuration from:
    1. config.yaml in project root (if exists)
    2. Environment variables (as override)
    3. Defaults (as fallback)

    Example:
        >>> config = Config()
        >>> client_id, client_secret = config.get_credentials('client')
        >>> config.get_api_base_url('sandbox')
        'https://sandbox-api.sahha.ai'
    """

    _instance: Optional['Config'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self) -> None:
        """Load configuration from config.yaml and environment."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        config_path = Path('config.yaml')
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f)
            except (OSError, ValueError, yaml.YAMLError) as e:
                log.warning(f"Failed to load config.yaml: {e}. Using defaults.")
            else:
                if isinstance(yaml_config, dict):
                    self._merge_config(yaml_config)
                    log.info(f"Loaded configuration from {config_path}")
                elif yaml_config is not None:
                    log.warning(
                        f"config.yaml must be a mapping, got {type(yaml_config).__name__}. Using defaults."
                    )
        else:
            log.debug("No config.yaml found. Using defaults and environment variables.")

        self._load_env_overrides()

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Recursively merge new config into existing config."""
        def merge(base: Dict, update: Dict) -> Dict:
            for key, value in update.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    merge(base[key], value)
                else:
                    base[key] = value
            return base

        merge(self._config, new_config)

    def _load_env_overrides(self) -> None:
        """Load overrides from environment variables."""
        for env_name, key_path in ENV_OVERRIDES.items():
            if value := os.getenv(env_name):
                self._set(key_path, value)

    def _set(self, key_path: str, value: Any) -> None:
        keys = key_path.split('.')
        node = self._config
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Example:
            >>> config.get('api.sahha.production_url')
            'https://api.sahha.ai'
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_credentials(self, kind: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Get an id/secret pair.

        Args:
            kind: 'client' (admin client-credentials grant) or
                'application' (direct basic-auth registration)

        Returns:
            (id, secret); either may be None when not configured
        """
        if kind not in ('client', 'application'):
            raise ValueError(f"Unknown credential kind: {kind}")
        return (
            self.get(f'api.sahha.{kind}_id'),
            self.get(f'api.sahha.{kind}_secret'),
        )

    def get_api_base_url(self, environment: str = 'production') -> str:
        """Get the Sahha base URL for 'production' (OAuth) or 'sandbox' (data)."""
        url = self.get(f'api.sahha.{environment}_url')
        if not url:
            raise ValueError(f"Unknown Sahha environment: {environment}")
        return url.rstrip('/')

    def get_request_timeout(self) -> float:
        """Per-request timeout in seconds."""
        return float(self.get('api.sahha.timeout_seconds', 30))

    def get_sample_profile_id(self) -> str:
        return self.get('sample.profile_id')

    def get_sample_date_range(self) -> Tuple[str, str]:
        return self.get('sample.start_date'), self.get('sample.end_date')

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        client_id, client_secret = self.get_credentials('client')
        if not client_id or not client_secret:
            errors.append(
                "Sahha client credentials not configured "
                "(set SAHHA_CLIENT_ID and SAHHA_CLIENT_SECRET or add to config.yaml)"
            )

        app_id, app_secret = self.get_credentials('application')
        if not app_id or not app_secret:
            errors.append(
                "Sahha application credentials not configured "
                "(set SAHHA_APPLICATION_ID and SAHHA_APPLICATION_SECRET or add to config.yaml)"
            )

        return errors

    def __repr__(self) -> str:
        """String representation (hides sensitive data)."""
        safe_config = copy.deepcopy(self._config)

        sahha = safe_config.get('api', {}).get('sahha', {})
        for key in SECRET_KEYS:
            if key in sahha:
                sahha[key] = '***MASKED***'

        return f"Config({safe_config})"


# Convenience functions for common operations
def get_config() -> Config:
    """Get the configuration singleton."""
    return Config()


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() reloads."""
    Config._instance = None


def get_client_credentials() -> Tuple[Optional[str], Optional[str]]:
    """Get Sahha client id/secret."""
    return get_config().get_credentials('client')


def get_application_credentials() -> Tuple[Optional[str], Optional[str]]:
    """Get Sahha application id/secret."""
    return get_config().get_credentials('application')
