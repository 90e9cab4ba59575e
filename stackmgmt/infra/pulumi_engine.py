# -----------------------------------------------------------------------------
# PROVISIONING ENGINE - Pulumi Service Provider
# -----------------------------------------------------------------------------
# Responsibility: Turn our desired-state specs into Pulumi resources.
#
# The orchestrator only knows the ProvisioningEngine protocol; PulumiEngine
# is the production implementation backed by pulumi_pulumiservice.
# Creating, updating and retaining the remote objects is Pulumi's job.
# -----------------------------------------------------------------------------

from typing import Any, Protocol

import pulumi
import pulumi_pulumiservice as pulumiservice
from rich.console import Console

from stackmgmt.domain.models import (
    DeploymentConfig,
    DriftScheduleSpec,
    TeamGrantSpec,
    TeamPermission,
    TtlScheduleSpec,
)

console = Console()

PERMISSION_SCOPES = {
    TeamPermission.READ: pulumiservice.TeamStackPermissionScope.READ,
    TeamPermission.EDIT: pulumiservice.TeamStackPermissionScope.EDIT,
    TeamPermission.ADMIN: pulumiservice.TeamStackPermissionScope.ADMIN,
}


class ProvisioningEngineError(Exception):
    """Raised when the engine refuses a resource request."""

    def __init__(self, kind: str, cause: Exception) -> None:
        super().__init__(f"{kind} request failed: {cause}")
        self.kind = kind
        self.cause = cause


class ProvisioningEngine(Protocol):
    """The four resource kinds the stack settings hand to the declarative engine."""

    def deployment_settings(self, config: DeploymentConfig) -> Any:
        """Request the deployment settings resource (retained on delete)."""
        ...

    def ttl_schedule(self, spec: TtlScheduleSpec) -> Any:
        ...

    def drift_schedule(self, spec: DriftScheduleSpec) -> Any:
        ...

    def team_permission(self, spec: TeamGrantSpec) -> Any:
        """Request the team stack permission (retained on delete)."""
        ...


class PulumiEngine:
    """
    ProvisioningEngine backed by the Pulumi Service provider.

    Every resource is a child of the owning component and is named after it,
    e.g. "{name}-ttlschedule".
    """

    def __init__(self, name: str, parent: pulumi.Resource | None = None) -> None:
        self._name = name
        self._parent = parent

    def _opts(self, retain_on_delete: bool = False) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(parent=self._parent, retain_on_delete=retain_on_delete)

    def _request(self, kind: str, factory, *args, **kwargs) -> Any:
        try:
            resource = factory(*args, **kwargs)
        except Exception as e:
            console.print(f"[red][ENGINE] {kind} rejected: {e}[/red]")
            raise ProvisioningEngineError(kind, e) from e

        console.print(f"[green][ENGINE] {kind} requested: {args[0]}[/green]")
        return resource

    def deployment_settings(self, config: DeploymentConfig) -> Any:
        identity = config.identity
        github = config.github
        source_context = None
        if config.source_context is not None:
            source_context = pulumiservice.DeploymentSettingsSourceContextArgs(
                git=pulumiservice.DeploymentSettingsGitSourceArgs(
                    branch=config.source_context.branch,
                ),
            )

        return self._request(
            "DeploymentSettings",
            pulumiservice.DeploymentSettings,
            f"{self._name}-deployment-settings",
            organization=identity.organization,
            project=identity.project,
            stack=identity.stack,
            github=pulumiservice.DeploymentSettingsGithubArgs(
                repository=github.repository,
                paths=github.paths,
                preview_pull_requests=github.preview_pull_requests,
                pull_request_template=github.pull_request_template,
                deploy_commits=github.deploy_commits,
            ),
            cache_options=pulumiservice.DeploymentSettingsCacheOptionsArgs(
                enable=config.cache_options.enable,
            ),
            operation_context=pulumiservice.DeploymentSettingsOperationContextArgs(
                environment_variables={
                    name: pulumi.Output.secret(value.secret)
                    for name, value in config.operation_context.environment_variables.items()
                },
                pre_run_commands=config.operation_context.pre_run_commands,
            ),
            source_context=source_context,
            opts=self._opts(retain_on_delete=True),
        )

    def ttl_schedule(self, spec: TtlScheduleSpec) -> Any:
        return self._request(
            "TtlSchedule",
            pulumiservice.TtlSchedule,
            f"{self._name}-ttlschedule",
            organization=spec.identity.organization,
            project=spec.identity.project,
            stack=spec.identity.stack,
            timestamp=spec.rfc3339,
            delete_after_destroy=spec.delete_after_destroy,
            opts=self._opts(),
        )

    def drift_schedule(self, spec: DriftScheduleSpec) -> Any:
        return self._request(
            "DriftSchedule",
            pulumiservice.DriftSchedule,
            f"{self._name}-driftschedule",
            organization=spec.identity.organization,
            project=spec.identity.project,
            stack=spec.identity.stack,
            schedule_cron=spec.schedule_cron,
            auto_remediate=spec.auto_remediate,
            opts=self._opts(),
        )

    def team_permission(self, spec: TeamGrantSpec) -> Any:
        return self._request(
            "TeamStackPermission",
            pulumiservice.TeamStackPermission,
            f"{self._name}-team-stack-assign",
            organization=spec.identity.organization,
            project=spec.identity.project,
            stack=spec.identity.stack,
            team=spec.team,
            permission=PERMISSION_SCOPES[spec.permission],
            opts=self._opts(retain_on_delete=True),
        )
