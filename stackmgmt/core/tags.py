# -----------------------------------------------------------------------------
# TAG RECONCILER
# -----------------------------------------------------------------------------
# Responsibility: Put a stack tag in place through the REST API.
#
# The delete_stack tag must survive `pulumi destroy`, and the Pulumi Service
# provider fails on the next `pulumi up` when the tag already exists. So this
# tag is the one thing we manage imperatively: delete it if present, then
# create it. Swap this class out if the provider ever supports adopting an
# existing tag.
# -----------------------------------------------------------------------------

from rich.console import Console

from stackmgmt.domain.models import StackIdentity, TagAssignment
from stackmgmt.infra.cloud_client import PulumiCloudClient

console = Console()


class TagReconciler:
    """
    Idempotent delete-then-create tag setter.

    Not safe to run concurrently for the same stack and tag name: the
    control plane rejects a create while a tag of that name exists.
    """

    def __init__(self, client: PulumiCloudClient) -> None:
        self._client = client

    def set_tag(self, identity: StackIdentity, name: str, value: str) -> TagAssignment:
        """
        Ensure the stack carries exactly name=value.

        Raises:
            RemoteAPIError: If the delete fails for any reason but not-found,
                or if the create fails.
        """
        tag = TagAssignment(name=name, value=value)
        console.print(f"[cyan][TAGS] Setting {name}={value} on {identity}[/cyan]")

        self._client.delete_tag(identity, tag.name)
        self._client.create_tag(identity, tag.name, tag.value)

        console.print(f"[green][TAGS] {name}={value} set on {identity}[/green]")
        return tag
