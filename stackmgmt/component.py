# -----------------------------------------------------------------------------
# STACK SETTINGS COMPONENT
# -----------------------------------------------------------------------------
# Responsibility: The Pulumi face of the orchestrator.
#
# Drop one StackSettings into a program and every `pulumi up` will:
# - derive deployment settings from the base stack
# - (re)set the delete_stack purge tag
# - schedule TTL deletion and hourly drift checks
# - grant a team admin on the stack
# -----------------------------------------------------------------------------

import pulumi
from rich.console import Console

from stackmgmt.config import StackSettingsConfig
from stackmgmt.core.orchestrator import StackSettingsOrchestrator
from stackmgmt.domain.models import StackIdentity, StackSettingsArgs
from stackmgmt.infra.cloud_client import PulumiCloudClient
from stackmgmt.infra.pulumi_engine import PulumiEngine

console = Console()

COMPONENT_TYPE = "stackmgmt:index:stacksettings"


class StackSettings(pulumi.ComponentResource):
    """
    Forces stack settings for TTL, drift, deployments, purge tag and team access.

    The deployment chain runs asynchronously once the base stack's settings
    come back; its result is exposed as the `outcome` output so a failure
    fails the update.
    """

    def __init__(
        self,
        name: str,
        args: StackSettingsArgs,
        config: StackSettingsConfig,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__(COMPONENT_TYPE, name, None, opts)

        identity = StackIdentity(
            organization=config.organization,
            project=pulumi.get_project(),
            stack=pulumi.get_stack(),
        )
        console.print(f"[cyan][STACK SETTINGS] {name}: {identity}[/cyan]")

        client = PulumiCloudClient(
            args.pulumi_access_token or config.access_token,
            api_url=config.api_url,
            timeout=config.request_timeout,
        )
        orchestrator = StackSettingsOrchestrator(
            identity=identity,
            config=config,
            args=args,
            client=client,
            engine=PulumiEngine(name, parent=self),
        )

        self.outcome = pulumi.Output.from_input(orchestrator.run())
        self.delete_stack_tag = self.outcome.apply(lambda o: o.delete_stack_tag)

        self.register_outputs({"deleteStackTag": self.delete_stack_tag})
