"""Credential resolution and optional defaults file.

Usage:
    creds = resolve_credentials(token=None, organization="acme")   # raises ConfigError without a token
    defaults = load_defaults("sonarcloud-config.yaml")               # raises ConfigError on bad file
    generate_template("sonarcloud-config.yaml")                     # writes example file to disk

Every value is looked up through an ordered list of sources; the first
non-empty one wins. Environment variables are read at call time.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://sonarcloud.io"

TOKEN_ENV          = "SONARCLOUD_TOKEN"
ORGANIZATION_ENVS  = ("SONARCLOUD_ORGANIZATION", "SONARCLOUD_ORGANISATION")
PROJECT_KEY_ENV    = "SONARCLOUD_PROJECT_KEY"

_DEFAULT_KEYS = ("token", "organization", "project_key", "url")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Credentials:
    token: str
    organization: str | None = None
    project_key: str | None = None


def first_value(sources: list[tuple[str, Any]]) -> str | None:
    """Return the first non-empty value from ``(label, value)`` pairs."""
    for label, value in sources:
        if value:
            logger.debug("Using %s", label)
            return str(value)
    return None


def token_sources(
    token: str | None,
    environ: Mapping[str, str],
    defaults: Mapping[str, Any],
) -> list[tuple[str, Any]]:
    return [
        ("token argument",  token),
        (TOKEN_ENV,         environ.get(TOKEN_ENV)),
        ("defaults file",   defaults.get("token")),
    ]


def organization_sources(
    organization: str | None,
    environ: Mapping[str, str],
    defaults: Mapping[str, Any],
) -> list[tuple[str, Any]]:
    return [
        ("organization argument", organization),
        *((name, environ.get(name)) for name in ORGANIZATION_ENVS),
        ("defaults file",         defaults.get("organization")),
    ]


def project_key_sources(
    environ: Mapping[str, str],
    defaults: Mapping[str, Any],
) -> list[tuple[str, Any]]:
    # No argument path: the project key only comes from configuration
    return [
        (PROJECT_KEY_ENV, environ.get(PROJECT_KEY_ENV)),
        ("defaults file", defaults.get("project_key")),
    ]


def resolve_credentials(
    token: str | None = None,
    organization: str | None = None,
    environ: Mapping[str, str] | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> Credentials:
    """Resolve token, organization and project key.

    Raises:
        ConfigError: if no token is available from any source.
    """
    env = os.environ if environ is None else environ
    file_values = defaults or {}

    api_token = first_value(token_sources(token, env, file_values))
    if not api_token:
        raise ConfigError(
            "SonarCloud API token is required. Provide it as a parameter "
            f"or set {TOKEN_ENV} environment variable."
        )

    return Credentials(
        token=api_token,
        organization=first_value(organization_sources(organization, env, file_values)),
        project_key=first_value(project_key_sources(env, file_values)),
    )


# ---------------------------------------------------------------------------
# Defaults file
# ---------------------------------------------------------------------------

def load_defaults(config_path: str) -> dict[str, Any]:
    """Load the optional YAML defaults file.

    Raises:
        ConfigError: if the file is missing, malformed, or contains keys
                     other than ``token``, ``organization``, ``project_key``
                     and ``url``.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m sonarcloud_issues init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    unknown = sorted(set(raw) - set(_DEFAULT_KEYS))
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in '{config_path}': {', '.join(unknown)}. "
            f"Allowed keys: {', '.join(_DEFAULT_KEYS)}"
        )

    return {k: str(v).strip() for k, v in raw.items() if v not in (None, "")}


TEMPLATE = """\
# Lowest-precedence defaults. Arguments and SONARCLOUD_* environment
# variables always win over the values below.
token: "xxxxxxxxxxxxxxxx"          # Generate at: https://sonarcloud.io/account/security
organization: "my-organization"
project_key: "my-organization_my-project"
# url: "https://sonarcloud.io"
"""


def generate_template(output_path: str = "sonarcloud-config.yaml") -> None:
    """Write a template defaults file to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
