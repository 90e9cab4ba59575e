"""
Pytest configuration and fixtures for stackmgmt tests.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables
os.environ.setdefault("PULUMI_ACCESS_TOKEN", "test-access-token")

from stackmgmt.config import StackSettingsConfig
from stackmgmt.core.schedules import ScheduleSpecBuilder
from stackmgmt.domain.models import DeploymentSettings, StackIdentity
from stackmgmt.infra.cloud_client import PulumiCloudClient

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def identity():
    """Target stack identity."""
    return StackIdentity(organization="pequod", project="demo", stack="prod")


@pytest.fixture
def base_identity(identity):
    """Base (template) stack identity."""
    return identity.with_stack("dev")


@pytest.fixture
def config():
    """Config with an explicit token and no file/env lookups."""
    return StackSettingsConfig(organization="pequod", base_stack="dev", access_token="tok123")


@pytest.fixture
def git_settings_json():
    """Deployment settings for a code-backed base stack, as the API returns them."""
    return {
        "sourceContext": {"git": {"branch": "refs/heads/release", "repoDir": "infra"}},
        "gitHub": {
            "repository": "acme/infra",
            "paths": ["infra/**"],
            "previewPullRequests": True,
            "pullRequestTemplate": False,
            "deployCommits": True,
            "deployPullRequest": 42,
        },
        "operationContext": {
            "environmentVariables": {"AWS_REGION": "us-west-2", "OLD_TOKEN": {"secret": "x"}},
            "preRunCommands": ["npm ci", "make lint"],
        },
        "cacheOptions": {"enable": False},
        "source": "github",
    }


@pytest.fixture
def template_settings_json():
    """Deployment settings for a no-code base stack."""
    return {
        "sourceContext": {"template": {"sourceType": "git"}},
        "gitHub": {"repository": "acme/templates"},
        "operationContext": {"environmentVariables": {"FOO": "bar"}},
        "cacheOptions": {"enable": True},
    }


@pytest.fixture
def git_settings(git_settings_json):
    return DeploymentSettings.model_validate(git_settings_json)


@pytest.fixture
def template_settings(template_settings_json):
    return DeploymentSettings.model_validate(template_settings_json)


@pytest.fixture
def fixed_schedules():
    """ScheduleSpecBuilder pinned to FIXED_NOW."""
    return ScheduleSpecBuilder(clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_client():
    """Mock control-plane client."""
    return MagicMock(spec=PulumiCloudClient)


@pytest.fixture
def mock_engine():
    """Mock provisioning engine."""
    return MagicMock()


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects."""

    def _make(status_code=200, json_data=None, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data or {}
        response.text = text
        return response

    return _make
