# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The stack settings logic:
# - DeploymentConfigBuilder: derive settings from the base stack
# - TagReconciler: delete-then-create for the delete_stack tag
# - ScheduleSpecBuilder: TTL, drift and team grant specs
# - StackSettingsOrchestrator: runs both branches and joins them
# -----------------------------------------------------------------------------

from .deployment_config import DeploymentConfigBuilder
from .orchestrator import StackSettingsError, StackSettingsOrchestrator, resolve_delete_stack_tag
from .schedules import ScheduleSpecBuilder
from .tags import TagReconciler

__all__ = [
    "DeploymentConfigBuilder",
    "StackSettingsError", "StackSettingsOrchestrator", "resolve_delete_stack_tag",
    "ScheduleSpecBuilder",
    "TagReconciler",
]
