#!/usr/bin/env python3
"""
Print the deployment settings a stack would get, without running Pulumi.

Use when:
- You want to check what will be carried over from the base stack.
- You need to confirm whether a project is code-backed or no-code.

Run from project root:
  python scripts/preview_settings.py <project> <stack>

Requires: PULUMI_ACCESS_TOKEN in the environment or .env.
Nothing is written to the control plane.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
from rich.console import Console

from stackmgmt.config import StackSettingsConfig
from stackmgmt.core.deployment_config import DeploymentConfigBuilder
from stackmgmt.core.orchestrator import resolve_delete_stack_tag
from stackmgmt.domain.models import StackIdentity
from stackmgmt.infra.cloud_client import PulumiCloudClient, RemoteAPIError

console = Console()

if __name__ == "__main__":
    if len(sys.argv) != 3:
        console.print("usage: preview_settings.py <project> <stack>")
        sys.exit(2)

    load_dotenv(PROJECT_ROOT / ".env")
    config = StackSettingsConfig.load()
    target = StackIdentity(organization=config.organization, project=sys.argv[1], stack=sys.argv[2])
    client = PulumiCloudClient(config.access_token, api_url=config.api_url, timeout=config.request_timeout)

    try:
        derived = DeploymentConfigBuilder(client, config.access_token).build(
            target.with_stack(config.base_stack), target
        )
    except RemoteAPIError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    # Never print the token itself
    preview = derived.model_dump(mode="json", exclude={"operation_context": {"environment_variables"}})
    console.print_json(data=preview)
    console.print(f"delete_stack tag: {resolve_delete_stack_tag(derived.is_code_backed)}")
