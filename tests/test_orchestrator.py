# =============================================================================
# STACKMGMT ORCHESTRATOR TESTS
# =============================================================================
# Tests for the two-branch stack settings run. The control-plane client and
# the provisioning engine are mocks.
# =============================================================================

from datetime import timedelta

import pytest

from conftest import FIXED_NOW
from stackmgmt.core.orchestrator import (
    StackSettingsError,
    StackSettingsOrchestrator,
    resolve_delete_stack_tag,
)
from stackmgmt.domain.models import StackSettingsArgs, TeamPermission
from stackmgmt.infra.cloud_client import RemoteAPIError
from stackmgmt.infra.pulumi_engine import ProvisioningEngineError


def make_orchestrator(identity, config, client, engine, schedules, **args):
    return StackSettingsOrchestrator(
        identity=identity,
        config=config,
        args=StackSettingsArgs(**args),
        client=client,
        engine=engine,
        schedules=schedules,
    )


class TestResolveDeleteStackTag:
    """delete_stack tag value."""

    def test_code_backed_default(self):
        assert resolve_delete_stack_tag(True) == "True"

    def test_code_backed_override(self):
        assert resolve_delete_stack_tag(True, "Keep") == "Keep"

    def test_no_code_ignores_override(self):
        """No-code stacks are never purged with their template repo."""
        assert resolve_delete_stack_tag(False) == "StackOnly"
        assert resolve_delete_stack_tag(False, "Keep") == "StackOnly"


class TestCodeBackedStack:
    """Runs against a code-backed base stack."""

    @pytest.mark.asyncio
    async def test_end_to_end(
        self, identity, base_identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """pequod/demo/prod derived from a release-branch base stack."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        outcome = await orchestrator.run()

        mock_client.fetch_deployment_settings.assert_called_once_with(base_identity)

        deployment = mock_engine.deployment_settings.call_args.args[0]
        assert deployment.identity == identity
        assert deployment.source_context.branch == "refs/heads/release"
        assert deployment.cache_options.enable is True
        assert deployment.access_token.secret == "tok123"
        assert deployment.github.repository == "acme/infra"

        mock_client.delete_tag.assert_called_once_with(identity, "delete_stack")
        mock_client.create_tag.assert_called_once_with(identity, "delete_stack", "True")
        mock_client.upsert_environment_variable.assert_not_called()

        assert outcome.is_code_backed is True
        assert outcome.delete_stack_tag == "True"
        assert outcome.ttl_timestamp == FIXED_NOW + timedelta(minutes=480)
        assert outcome.auto_remediate is True
        assert outcome.team == "DevTeam"

    @pytest.mark.asyncio
    async def test_override_tag_and_schedules(
        self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """Caller args reach the tag, TTL and drift specs."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        orchestrator = make_orchestrator(
            identity, config, mock_client, mock_engine, fixed_schedules,
            ttl_minutes=60, drift_management="DetectOnly", delete_stack="Keep",
        )

        outcome = await orchestrator.run()

        mock_client.create_tag.assert_called_once_with(identity, "delete_stack", "Keep")
        ttl = mock_engine.ttl_schedule.call_args.args[0]
        assert ttl.timestamp == FIXED_NOW + timedelta(minutes=60)
        drift = mock_engine.drift_schedule.call_args.args[0]
        assert drift.auto_remediate is False
        assert drift.schedule_cron == "0 * * * *"
        assert outcome.delete_stack_tag == "Keep"

    @pytest.mark.asyncio
    async def test_args_token_wins(self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings):
        """An explicit token argument overrides the configured one."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        orchestrator = make_orchestrator(
            identity, config, mock_client, mock_engine, fixed_schedules,
            pulumi_access_token="explicit",
        )

        await orchestrator.run()

        deployment = mock_engine.deployment_settings.call_args.args[0]
        assert deployment.access_token.secret == "explicit"


class TestNoCodeStack:
    """Runs against a templated base stack."""

    @pytest.mark.asyncio
    async def test_no_code_path(
        self, identity, config, mock_client, mock_engine, fixed_schedules, template_settings
    ):
        """Token goes through the API, tag is StackOnly, no deployment settings resource."""
        mock_client.fetch_deployment_settings.return_value = template_settings
        orchestrator = make_orchestrator(
            identity, config, mock_client, mock_engine, fixed_schedules, delete_stack="Keep",
        )

        outcome = await orchestrator.run()

        mock_engine.deployment_settings.assert_not_called()
        mock_client.upsert_environment_variable.assert_called_once_with(
            identity, "PULUMI_ACCESS_TOKEN", "tok123"
        )
        mock_client.create_tag.assert_called_once_with(identity, "delete_stack", "StackOnly")
        mock_engine.ttl_schedule.assert_called_once()
        mock_engine.drift_schedule.assert_called_once()
        assert outcome.is_code_backed is False
        assert outcome.delete_stack_tag == "StackOnly"


class TestTeamGrant:
    """Branch B."""

    @pytest.mark.asyncio
    async def test_named_team(self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings):
        """The named team gets admin."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        orchestrator = make_orchestrator(
            identity, config, mock_client, mock_engine, fixed_schedules, team_assignment="Platform",
        )

        outcome = await orchestrator.run()

        grant = mock_engine.team_permission.call_args.args[0]
        assert grant.team == "Platform"
        assert grant.permission == TeamPermission.ADMIN
        assert grant.identity == identity
        assert outcome.team == "Platform"


class TestFailures:
    """Error collection across branches."""

    @pytest.mark.asyncio
    async def test_fetch_failure_still_grants_team(
        self, identity, base_identity, config, mock_client, mock_engine, fixed_schedules
    ):
        """A failed fetch aborts branch A but branch B still runs."""
        error = RemoteAPIError("get deployment settings", base_identity, 401, "unauthorized")
        mock_client.fetch_deployment_settings.side_effect = error
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(StackSettingsError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.errors == [error]
        assert exc_info.value.identity == identity
        mock_engine.team_permission.assert_called_once()
        mock_client.delete_tag.assert_not_called()
        mock_engine.ttl_schedule.assert_not_called()
        mock_engine.drift_schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_both_branches_fail(
        self, identity, base_identity, config, mock_client, mock_engine, fixed_schedules
    ):
        """Errors from both branches are reported together."""
        fetch_error = RemoteAPIError("get deployment settings", base_identity, 500, "down")
        grant_error = ProvisioningEngineError("TeamStackPermission", RuntimeError("no such team"))
        mock_client.fetch_deployment_settings.side_effect = fetch_error
        mock_engine.team_permission.side_effect = grant_error
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(StackSettingsError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.errors == [fetch_error, grant_error]
        assert "RemoteAPIError" in str(exc_info.value)
        assert "ProvisioningEngineError" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_team_failure_keeps_chain(
        self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """A failed grant does not stop the deployment chain."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        mock_engine.team_permission.side_effect = ProvisioningEngineError(
            "TeamStackPermission", RuntimeError("denied")
        )
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(StackSettingsError) as exc_info:
            await orchestrator.run()

        assert len(exc_info.value.errors) == 1
        mock_engine.drift_schedule.assert_called_once()
        mock_client.create_tag.assert_called_once()

    @pytest.mark.asyncio
    async def test_partial_application_not_rolled_back(
        self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """TTL stays requested when the drift schedule fails afterwards."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        mock_engine.drift_schedule.side_effect = ProvisioningEngineError(
            "DriftSchedule", RuntimeError("invalid cron")
        )
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(StackSettingsError):
            await orchestrator.run()

        mock_engine.deployment_settings.assert_called_once()
        mock_engine.ttl_schedule.assert_called_once()

    @pytest.mark.asyncio
    async def test_tag_failure_aborts_schedules(
        self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """A tag failure stops the chain before the schedules."""
        mock_client.fetch_deployment_settings.return_value = git_settings
        mock_client.create_tag.side_effect = RemoteAPIError("set delete_stack tag", identity, 409, "exists")
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(StackSettingsError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.errors[0].status_code == 409
        mock_engine.ttl_schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_exception_propagates(
        self, identity, config, mock_client, mock_engine, fixed_schedules, git_settings
    ):
        """A BaseException from a branch is re-raised as is, not collected."""

        class Shutdown(BaseException):
            pass

        mock_client.fetch_deployment_settings.return_value = git_settings
        mock_engine.team_permission.side_effect = Shutdown()
        orchestrator = make_orchestrator(identity, config, mock_client, mock_engine, fixed_schedules)

        with pytest.raises(Shutdown):
            await orchestrator.run()

        mock_engine.drift_schedule.assert_called_once()
