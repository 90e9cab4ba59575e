# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Pydantic models for what the control plane stores about a stack and for
# the desired state we hand to the provisioning engine.
# -----------------------------------------------------------------------------

from .models import (
    ACCESS_TOKEN_ENV_VAR,
    DEFAULT_BRANCH,
    DELETE_STACK_TAG,
    CacheOptions,
    DeploymentConfig,
    DeploymentSettings,
    DriftScheduleSpec,
    GitHubSettings,
    GitSource,
    SecretValue,
    StackIdentity,
    StackSettingsArgs,
    StackSettingsOutcome,
    TagAssignment,
    TeamGrantSpec,
    TeamPermission,
    TemplateSource,
    TtlScheduleSpec,
)

__all__ = [
    "ACCESS_TOKEN_ENV_VAR", "DEFAULT_BRANCH", "DELETE_STACK_TAG",
    "CacheOptions", "DeploymentConfig", "DeploymentSettings",
    "DriftScheduleSpec", "GitHubSettings", "GitSource", "SecretValue",
    "StackIdentity", "StackSettingsArgs", "StackSettingsOutcome",
    "TagAssignment", "TeamGrantSpec", "TeamPermission", "TemplateSource",
    "TtlScheduleSpec",
]
