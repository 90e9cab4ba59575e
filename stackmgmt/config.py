# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
# Responsibility: Resolve where and as whom we talk to the control plane.
#
# Sources, lowest precedence first:
# - built-in defaults
# - stackmgmt.yaml at the project root (optional)
# - environment variables (PULUMI_ACCESS_TOKEN, STACKMGMT_ORG, ...)
#
# This is the only module that reads the environment. Everything else gets
# a StackSettingsConfig (or plain values from it) at construction time.
# -----------------------------------------------------------------------------

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console

console = Console()

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "stackmgmt.yaml"

# Placeholder used when no token is available; the first API call fails with 401
MISSING_TOKEN = "notokenfound"


class ConfigError(Exception):
    """Raised when the config file exists but cannot be used."""

    pass


class StackSettingsConfig(BaseModel):
    """
    Settings shared by every component of a stack settings run.

    base_stack is the stack the new-project wizard creates first; its
    deployment settings are the template for every other stack.
    """

    organization: str = Field(default="pequod", min_length=1)
    base_stack: str = Field(default="dev", min_length=1)
    api_url: str = "https://api.pulumi.com"
    access_token: str = MISSING_TOKEN
    request_timeout: int = Field(default=30, gt=0)

    @property
    def has_token(self) -> bool:
        return self.access_token != MISSING_TOKEN

    @classmethod
    def load(
        cls,
        path: Path = DEFAULT_CONFIG_PATH,
        env: Mapping[str, str] | None = None,
    ) -> "StackSettingsConfig":
        """
        Build the config from the YAML file and the environment.

        Args:
            path: Optional YAML file with organization/base_stack/api_url/request_timeout.
            env: Environment mapping (defaults to os.environ).

        Returns:
            Validated StackSettingsConfig.

        Raises:
            ConfigError: If the file is not a mapping or holds invalid values.
        """
        env = os.environ if env is None else env
        data = _read_yaml(path)

        overrides = {
            "organization": env.get("STACKMGMT_ORG"),
            "base_stack": env.get("STACKMGMT_BASE_STACK"),
            "api_url": env.get("PULUMI_BACKEND_URL"),
            "access_token": env.get("PULUMI_ACCESS_TOKEN"),
            "request_timeout": env.get("STACKMGMT_REQUEST_TIMEOUT"),
        }
        data.update({key: value for key, value in overrides.items() if value})

        try:
            config = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid stack settings configuration: {e}") from e

        if not config.has_token:
            console.print(
                "[yellow][CONFIG] PULUMI_ACCESS_TOKEN not set - API calls will be rejected[/yellow]"
            )
        console.print(
            f"[green][CONFIG] Organization {config.organization}, "
            f"base stack {config.base_stack}[/green]"
        )
        return config


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        console.print(f"[dim][CONFIG] {path.name} not found, using defaults[/dim]")
        return {}

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data
