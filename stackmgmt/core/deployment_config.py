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
# DEPLOYMENT CONFIG BUILDER
# -----------------------------------------------------------------------------
# Responsibility: Derive a stack's deployment settings from the base stack's.
#
# The control plane primes every new stack from the base stack, so we do
# the same and only tweak:
# - caching is always on
# - PULUMI_ACCESS_TOKEN is injected so deployments can read other stacks
#   (template config for review stacks, stack references)
#
# Everything else (branch, GitHub integration, pre-run commands) is carried
# over, so all stacks of a project live on the same repo and branch.
# -----------------------------------------------------------------------------

from rich.console import Console

from stackmgmt.domain.models import (
    ACCESS_TOKEN_ENV_VAR,
    DEFAULT_BRANCH,
    CacheOptions,
    DeploymentConfig,
    DeploymentOperationContext,
    DeploymentSettings,
    GitHubSettings,
    GitSource,
    SecretValue,
    StackIdentity,
    TemplateSource,
)
from stackmgmt.infra.cloud_client import PulumiCloudClient

console = Console()


class DeploymentConfigBuilder:
    """
    Builds the target stack's deployment settings from a base stack.

    Classification:
    - Git source (or none at all): code-backed, settings are managed declaratively
    - Template source: no-code, the derived config carries no source context
    """

    def __init__(self, client: PulumiCloudClient, access_token: str) -> None:
        self._client = client
        self._access_token = access_token

    def build(self, base: StackIdentity, target: StackIdentity) -> DeploymentConfig:
        """
        Fetch the base stack's settings and derive the target's from them.

        Raises:
            RemoteAPIError: If the base settings cannot be fetched.
        """
        base_settings = self._client.fetch_deployment_settings(base)
        return self.derive(base_settings, target)

    def derive(self, base: DeploymentSettings, target: StackIdentity) -> DeploymentConfig:
        """Pure derivation; no I/O."""
        is_code_backed = not isinstance(base.source_context, TemplateSource)

        branch = DEFAULT_BRANCH
        if isinstance(base.source_context, GitSource) and base.source_context.branch:
            branch = base.source_context.branch

        base_github = base.git_hub or GitHubSettings()
        github = GitHubSettings(
            repository=base_github.repository,
            paths=base_github.paths,
            preview_pull_requests=base_github.preview_pull_requests,
            pull_request_template=base_github.pull_request_template,
            deploy_commits=base_github.deploy_commits,
        )

        config = DeploymentConfig(
            identity=target,
            github=github,
            cache_options=CacheOptions(enable=True),
            operation_context=DeploymentOperationContext(
                # Replaces, not merges, the base stack's variables
                environment_variables={ACCESS_TOKEN_ENV_VAR: SecretValue(secret=self._access_token)},
                pre_run_commands=base.operation_context.pre_run_commands,
            ),
            source_context=GitSource(branch=branch) if is_code_backed else None,
            is_code_backed=is_code_backed,
        )

        kind = f"code-backed on {branch}" if is_code_backed else "no-code (template)"
        console.print(f"[cyan][DEPLOY CONFIG] {target}: {kind}[/cyan]")
        return config
