# -----------------------------------------------------------------------------
# THE STACK SETTINGS ORCHESTRATOR
# -----------------------------------------------------------------------------
# Runs one stack settings pass as two independent branches:
#
# Branch A (deployment chain):
#   fetch base settings -> derive -> deployment settings | token env var
#   -> delete_stack tag -> TTL schedule -> drift schedule
# Branch B (team grant):
#   team stack permission
#
# Both branches always run to completion or failure; errors from either are
# collected and raised together. Nothing is rolled back.
# -----------------------------------------------------------------------------

import asyncio
import traceback

from rich.console import Console

from stackmgmt.config import StackSettingsConfig
from stackmgmt.core.deployment_config import DeploymentConfigBuilder
from stackmgmt.core.schedules import ScheduleSpecBuilder
from stackmgmt.core.tags import TagReconciler
from stackmgmt.domain.models import (
    ACCESS_TOKEN_ENV_VAR,
    DELETE_STACK_TAG,
    StackIdentity,
    StackSettingsArgs,
    StackSettingsOutcome,
)
from stackmgmt.infra.cloud_client import PulumiCloudClient
from stackmgmt.infra.pulumi_engine import ProvisioningEngine

console = Console()

PURGE_TAG_VALUE = "True"
# Purging a no-code stack would also delete the shared templates repo
STACK_ONLY_TAG_VALUE = "StackOnly"


class StackSettingsError(Exception):
    """
    Raised when either branch of a stack settings run failed.

    errors holds every branch failure in branch order, unmodified.
    """

    def __init__(self, identity: StackIdentity, errors: list[Exception]) -> None:
        details = "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        super().__init__(f"stack settings failed for {identity.fqdn}: {details}")
        self.identity = identity
        self.errors = errors


def resolve_delete_stack_tag(is_code_backed: bool, override: str | None = None) -> str:
    """Value for the delete_stack tag; the override only applies to code-backed stacks."""
    if not is_code_backed:
        return STACK_ONLY_TAG_VALUE
    return override or PURGE_TAG_VALUE


class StackSettingsOrchestrator:
    """
    Coordinates one stack settings run for a single stack.

    The access token comes from args when given, otherwise from config.
    """

    def __init__(
        self,
        identity: StackIdentity,
        config: StackSettingsConfig,
        args: StackSettingsArgs,
        client: PulumiCloudClient,
        engine: ProvisioningEngine,
        schedules: ScheduleSpecBuilder | None = None,
    ) -> None:
        self._identity = identity
        self._base = identity.with_stack(config.base_stack)
        self._args = args
        self._token = args.pulumi_access_token or config.access_token
        self._client = client
        self._engine = engine
        self._builder = DeploymentConfigBuilder(client, self._token)
        self._tags = TagReconciler(client)
        self._schedules = schedules or ScheduleSpecBuilder()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def run(self) -> StackSettingsOutcome:
        """
        Run both branches and join them.

        Returns:
            The composite outcome when both branches succeed.

        Raises:
            StackSettingsError: If either branch failed (all errors attached).
        """
        console.print(
            f"[cyan][ORCHESTRATOR] Stack settings for {self._identity} "
            f"(base: {self._base.stack})[/cyan]"
        )

        results = await asyncio.gather(
            self._deployment_chain(),
            self._team_grant(),
            return_exceptions=True,
        )

        errors = []
        for result in results:
            # Cancellation and interpreter exits are not branch failures
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                errors.append(result)

        if errors:
            console.print(
                f"[red][ORCHESTRATOR] {len(errors)} branch(es) failed for {self._identity}[/red]"
            )
            raise StackSettingsError(self._identity, errors)

        chain, team = results
        outcome = StackSettingsOutcome(identity=self._identity, team=team, **chain)
        console.print(f"[green][ORCHESTRATOR] Stack settings applied: {self._identity}[/green]")
        return outcome

    # =========================================================================
    # BRANCH A: DEPLOYMENT CHAIN
    # =========================================================================

    async def _deployment_chain(self) -> dict:
        try:
            config = await asyncio.to_thread(self._builder.build, self._base, self._identity)

            if config.is_code_backed:
                tag_value = resolve_delete_stack_tag(True, self._args.delete_stack)
                self._engine.deployment_settings(config)
            else:
                tag_value = resolve_delete_stack_tag(False)
                # No-code stacks still need the token for their deployments
                await asyncio.to_thread(
                    self._client.upsert_environment_variable,
                    self._identity,
                    ACCESS_TOKEN_ENV_VAR,
                    self._token,
                )

            await asyncio.to_thread(
                self._tags.set_tag, self._identity, DELETE_STACK_TAG, tag_value
            )

            ttl = self._schedules.build_ttl(self._identity, self._args.ttl_minutes)
            self._engine.ttl_schedule(ttl)

            drift = self._schedules.build_drift(self._identity, self._args.drift_management)
            self._engine.drift_schedule(drift)

        except Exception as e:
            console.print(f"[red][ORCHESTRATOR] Deployment chain failed: {e}[/red]")
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
            raise

        return {
            "is_code_backed": config.is_code_backed,
            "delete_stack_tag": tag_value,
            "ttl_timestamp": ttl.timestamp,
            "auto_remediate": drift.auto_remediate,
        }

    # =========================================================================
    # BRANCH B: TEAM GRANT
    # =========================================================================

    async def _team_grant(self) -> str:
        grant = self._schedules.build_team_grant(self._identity, self._args.team_assignment)
        try:
            self._engine.team_permission(grant)
        except Exception as e:
            console.print(f"[red][ORCHESTRATOR] Team grant failed for {grant.team}: {e}[/red]")
            raise
        return grant.team
