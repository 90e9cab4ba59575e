# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# DOMAIN MODELS - STACK SETTINGS
# -----------------------------------------------------------------------------
# These Pydantic models describe what the control plane stores for a stack
# and what we ask the provisioning engine to create for it.
#
# The API speaks camelCase JSON; every field carries its API alias so a
# response body can be validated directly with model_validate().
# -----------------------------------------------------------------------------

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

ACCESS_TOKEN_ENV_VAR = "PULUMI_ACCESS_TOKEN"
DEFAULT_BRANCH = "refs/heads/main"
DELETE_STACK_TAG = "delete_stack"


class StackIdentity(BaseModel):
    """
    Address of a stack in the control plane: organization/project/stack.

    Every API call and every engine resource is keyed by one of these.
    """

    organization: str = Field(..., min_length=1)
    project: str = Field(..., min_length=1)
    stack: str = Field(..., min_length=1)

    class Config:
        frozen = True

    @property
    def fqdn(self) -> str:
        return f"{self.organization}/{self.project}/{self.stack}"

    def with_stack(self, stack: str) -> "StackIdentity":
        """Identity of a sibling stack in the same project."""
        return StackIdentity(organization=self.organization, project=self.project, stack=stack)

    def __str__(self) -> str:
        return self.fqdn


class SecretValue(BaseModel):
    """An environment variable value the control plane must store encrypted."""

    secret: str


class GitSource(BaseModel):
    """Code-backed source context: deployments run from a git branch."""

    branch: str | None = None
    repo_dir: str | None = Field(default=None, alias="repoDir")

    class Config:
        populate_by_name = True


class TemplateSource(BaseModel):
    """
    Templated ("no-code") source context.

    A stack created from a template has no repository of its own, so its
    deployment settings are not managed declaratively.
    """

    source_type: str | None = Field(default=None, alias="sourceType")

    class Config:
        populate_by_name = True


SourceContext = GitSource | TemplateSource


def parse_source_context(raw: Any) -> SourceContext | None:
    """
    Turn the API's {"git": {...}} / {"template": {...}} object into one variant.

    A "template" key wins; anything else is treated as a git source so that a
    bare {} still classifies as code-backed.
    """
    if raw is None or isinstance(raw, (GitSource, TemplateSource)):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"sourceContext must be an object, got {type(raw).__name__}")
    if raw.get("template") is not None:
        return TemplateSource.model_validate(raw["template"])
    return GitSource.model_validate(raw.get("git") or {})


class GitHubSettings(BaseModel):
    """GitHub integration block of the deployment settings."""

    repository: str | None = None
    paths: list[str] | None = None
    preview_pull_requests: bool | None = Field(default=None, alias="previewPullRequests")
    pull_request_template: bool | None = Field(default=None, alias="pullRequestTemplate")
    deploy_commits: bool | None = Field(default=None, alias="deployCommits")
    deploy_pull_request: int | None = Field(default=None, alias="deployPullRequest")

    class Config:
        populate_by_name = True


class CacheOptions(BaseModel):
    enable: bool = False


class OperationContext(BaseModel):
    environment_variables: dict[str, Any] | None = Field(
        default=None, alias="environmentVariables"
    )
    pre_run_commands: list[str] | None = Field(default=None, alias="preRunCommands")
    oidc: dict[str, Any] | None = None
    options: dict[str, Any] | None = None

    class Config:
        populate_by_name = True


class DeploymentSettings(BaseModel):
    """
    The control plane's stored configuration for a stack's deployments.

    Mirrors GET /api/stacks/{org}/{project}/{stack}/deployments/settings.
    Unknown fields in the response are ignored.
    """

    operation_context: OperationContext = Field(
        default_factory=OperationContext, alias="operationContext"
    )
    source_context: SourceContext | None = Field(default=None, alias="sourceContext")
    git_hub: GitHubSettings | None = Field(default=None, alias="gitHub")
    cache_options: CacheOptions = Field(default_factory=CacheOptions, alias="cacheOptions")
    source: str | None = None

    class Config:
        populate_by_name = True

    @field_validator("operation_context", "cache_options", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # The API sends null for sections that were never configured
        return {} if value is None else value

    @field_validator("source_context", mode="before")
    @classmethod
    def _one_source_variant(cls, value: Any) -> SourceContext | None:
        return parse_source_context(value)

    @property
    def is_template(self) -> bool:
        return isinstance(self.source_context, TemplateSource)


class DeploymentOperationContext(BaseModel):
    """Operation context written to the derived settings."""

    environment_variables: dict[str, SecretValue]
    pre_run_commands: list[str] | None = None


class DeploymentConfig(BaseModel):
    """
    Deployment settings derived for the target stack.

    source_context is None for no-code stacks, which tells the orchestrator
    to skip declarative management of the settings.
    """

    identity: StackIdentity
    github: GitHubSettings
    cache_options: CacheOptions
    operation_context: DeploymentOperationContext
    source_context: GitSource | None = None
    is_code_backed: bool

    @property
    def access_token(self) -> SecretValue:
        return self.operation_context.environment_variables[ACCESS_TOKEN_ENV_VAR]


class TagAssignment(BaseModel):
    name: str = Field(..., min_length=1)
    value: str


class TtlScheduleSpec(BaseModel):
    """When the control plane should delete the stack."""

    identity: StackIdentity
    timestamp: datetime
    delete_after_destroy: bool = False

    @property
    def rfc3339(self) -> str:
        return self.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class DriftScheduleSpec(BaseModel):
    identity: StackIdentity
    schedule_cron: str = "0 * * * *"
    auto_remediate: bool = True


class TeamPermission(str, Enum):
    """Team stack permission levels understood by the control plane."""

    READ = "read"
    EDIT = "edit"
    ADMIN = "admin"


class TeamGrantSpec(BaseModel):
    identity: StackIdentity
    team: str = Field(..., min_length=1)
    permission: TeamPermission = TeamPermission.ADMIN


class StackSettingsArgs(BaseModel):
    """
    Caller inputs for the StackSettings component.

    Fields:
    - ttl_minutes: minutes until the stack is deleted (default 480)
    - drift_management: "Correct" remediates drift, anything else only detects it
    - delete_stack: override for the delete_stack tag on code-backed stacks
    - team_assignment: team granted admin on the stack (default "DevTeam")
    - pulumi_access_token: token injected into deployments; falls back to config
    """

    ttl_minutes: int | None = Field(default=None, ge=0)
    drift_management: str | None = None
    delete_stack: str | None = None
    team_assignment: str | None = None
    pulumi_access_token: str | None = None

    class Config:
        str_strip_whitespace = True


class StackSettingsOutcome(BaseModel):
    """What a successful run applied to the stack."""

    identity: StackIdentity
    is_code_backed: bool
    delete_stack_tag: str
    ttl_timestamp: datetime
    auto_remediate: bool
    team: str
