# =============================================================================
# STACKMGMT TAG RECONCILER TESTS
# =============================================================================
# Tests for the delete-then-create tag setter.
# =============================================================================

from unittest.mock import call, patch

import pytest

from stackmgmt.core.tags import TagReconciler
from stackmgmt.infra.cloud_client import PulumiCloudClient, RemoteAPIError


class TestTagReconciler:
    """Test TagReconciler with a mocked client."""

    def test_delete_then_create(self, mock_client, identity):
        """Exactly one delete followed by exactly one create."""
        reconciler = TagReconciler(mock_client)

        tag = reconciler.set_tag(identity, "delete_stack", "True")

        assert mock_client.method_calls == [
            call.delete_tag(identity, "delete_stack"),
            call.create_tag(identity, "delete_stack", "True"),
        ]
        assert tag.name == "delete_stack"
        assert tag.value == "True"

    def test_delete_failure_stops_create(self, mock_client, identity):
        """A real delete failure is raised and nothing is created."""
        mock_client.delete_tag.side_effect = RemoteAPIError("delete tag", identity, 500, "boom")
        reconciler = TagReconciler(mock_client)

        with pytest.raises(RemoteAPIError):
            reconciler.set_tag(identity, "delete_stack", "True")

        mock_client.create_tag.assert_not_called()

    def test_create_failure_raises(self, mock_client, identity):
        """Create failures surface as RemoteAPIError."""
        mock_client.create_tag.side_effect = RemoteAPIError("set tag", identity, 409, "exists")
        reconciler = TagReconciler(mock_client)

        with pytest.raises(RemoteAPIError):
            reconciler.set_tag(identity, "delete_stack", "StackOnly")


class TestTagReconcilerOverHttp:
    """Test TagReconciler against the real client with mocked HTTP."""

    @patch("stackmgmt.infra.cloud_client.requests.post")
    @patch("stackmgmt.infra.cloud_client.requests.delete")
    def test_not_found_delete_still_creates(self, mock_delete, mock_post, identity, make_response):
        """A 404 on delete does not prevent the create."""
        mock_delete.return_value = make_response(404, text="not found")
        mock_post.return_value = make_response(204)
        reconciler = TagReconciler(PulumiCloudClient("tok123"))

        reconciler.set_tag(identity, "delete_stack", "Keep")

        mock_delete.assert_called_once()
        mock_post.assert_called_once()
        assert mock_post.call_args.kwargs["json"] == {"name": "delete_stack", "value": "Keep"}
