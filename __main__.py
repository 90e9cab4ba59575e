"""
Pulumi program: apply stack settings to the current stack.

Pulumi config (all optional):
  ttlMinutes       minutes until the stack is deleted (default 480)
  driftManagement  "Correct" to remediate drift, anything else to only detect
  deleteStack      delete_stack tag override for code-backed stacks
  teamAssignment   team granted admin on the stack (default "DevTeam")

Environment: PULUMI_ACCESS_TOKEN, STACKMGMT_ORG, STACKMGMT_BASE_STACK (or .env).
"""

from pathlib import Path

import pulumi
from dotenv import load_dotenv

from stackmgmt.component import StackSettings
from stackmgmt.config import StackSettingsConfig
from stackmgmt.domain.models import StackSettingsArgs

PROJECT_ROOT = Path(__file__).parent
load_dotenv(PROJECT_ROOT / ".env")

pulumi_config = pulumi.Config()

settings = StackSettings(
    "stacksettings",
    StackSettingsArgs(
        ttl_minutes=pulumi_config.get_int("ttlMinutes"),
        drift_management=pulumi_config.get("driftManagement"),
        delete_stack=pulumi_config.get("deleteStack"),
        team_assignment=pulumi_config.get("teamAssignment"),
    ),
    StackSettingsConfig.load(),
)

pulumi.export("deleteStackTag", settings.delete_stack_tag)
