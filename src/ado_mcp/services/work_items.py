"""Work item tracking: queries, CRUD, links and comments."""

import logging

from ..consts import COMMENTS_API_VERSION
from .base import BaseService, field_operations

logger = logging.getLogger("ado-mcp.services.work_items")

RELATED_LINK = "System.LinkTypes.Related"
CHILD_LINK = "System.LinkTypes.Hierarchy-Forward"


class WorkItemService(BaseService):
    """Work item operations."""

    def _work_item_url(self, project: str, work_item_id: int) -> str:
        return f"{self.client.base_url}/{project}/_apis/wit/workitems/{work_item_id}"

    async def get_work_items(self, ids: list[int] | None, project: str) -> list:
        """Batch fetch work items by id. No request is made for an empty list."""
        if not ids:
            return []
        return await self.client.get_list(
            f"/{project}/_apis/wit/workitems",
            params={"ids": ",".join(str(i) for i in ids)},
        )

    async def query_work_items(self, wiql: str, project: str) -> list:
        """Run a WIQL query and fetch the matching work items.

        Two sequential calls: the query returns reference ids, then the items
        are fetched in one batch. Zero matches skip the second call.
        """
        data = await self.client.post_json(
            f"/{project}/_apis/wit/wiql", json={"query": wiql}
        )
        refs = (data or {}).get("workItems") or []
        if not refs:
            logger.debug("WIQL query matched no work items")
            return []
        return await self.get_work_items([ref["id"] for ref in refs], project)

    async def create_work_item(
        self,
        project: str,
        work_item_type: str,
        title: str,
        description: str | None = None,
        additional_fields: dict | None = None,
    ) -> dict:
        fields = {"System.Title": title}
        if description:
            fields["System.Description"] = description
        fields.update(additional_fields or {})
        return await self._patch_document(
            "POST",
            f"/{project}/_apis/wit/workitems/${work_item_type}",
            field_operations(fields),
        )

    async def update_work_item(
        self,
        project: str,
        work_item_id: int,
        fields: dict,
        comment: str | None = None,
    ) -> dict:
        operations = field_operations(fields)
        if comment:
            operations.append(
                {"op": "add", "path": "/fields/System.History", "value": comment}
            )
        return await self._patch_document(
            "PATCH", f"/{project}/_apis/wit/workitems/{work_item_id}", operations
        )

    async def update_work_items_batch(self, project: str, updates: list) -> list:
        data = await self.client.post_json(
            f"/{project}/_apis/wit/workitemsbatch", json={"updates": updates}
        )
        return (data or {}).get("value") or []

    async def _add_relations(
        self, project: str, work_item_id: int, relations: list[dict]
    ) -> dict:
        operations = [
            {"op": "add", "path": "/relations/-", "value": relation}
            for relation in relations
        ]
        return await self._patch_document(
            "PATCH", f"/{project}/_apis/wit/workitems/{work_item_id}", operations
        )

    async def add_child_work_items(
        self, project: str, parent_id: int, child_ids: list[int]
    ) -> dict:
        relations = [
            {
                "rel": CHILD_LINK,
                "url": self._work_item_url(project, child_id),
                "attributes": {"comment": "Added as child work item"},
            }
            for child_id in child_ids
        ]
        return await self._add_relations(project, parent_id, relations)

    async def link_work_items(
        self,
        project: str,
        source_id: int,
        target_id: int,
        link_type: str | None = None,
    ) -> dict:
        relation = {
            "rel": link_type or RELATED_LINK,
            "url": self._work_item_url(project, target_id),
            "attributes": {"comment": "Linked work items"},
        }
        return await self._add_relations(project, source_id, [relation])

    async def unlink_work_item(
        self, project: str, work_item_id: int, relation_id: str
    ) -> dict:
        return await self._patch_document(
            "PATCH",
            f"/{project}/_apis/wit/workitems/{work_item_id}",
            [{"op": "remove", "path": f"/relations/{relation_id}"}],
        )

    async def add_artifact_link(
        self, project: str, work_item_id: int, artifact_uri: str, artifact_type: str
    ) -> dict:
        relation = {
            "rel": "ArtifactLink",
            "url": artifact_uri,
            "attributes": {"name": artifact_type},
        }
        return await self._add_relations(project, work_item_id, [relation])

    async def link_work_item_to_pull_request(
        self, project: str, work_item_id: int, repository_id: str, pull_request_id: int
    ) -> dict:
        artifact_uri = (
            f"vstfs:///Git/PullRequestId/{project}%2F{repository_id}%2F{pull_request_id}"
        )
        return await self.add_artifact_link(
            project, work_item_id, artifact_uri, "Pull Request"
        )

    async def add_work_item_comment(
        self, project: str, work_item_id: int, text: str
    ) -> dict:
        return await self.client.post_json(
            f"/{project}/_apis/wit/workitems/{work_item_id}/comments",
            json={"text": text},
            api_version=COMMENTS_API_VERSION,
        )

    async def get_work_item_comments(self, project: str, work_item_id: int) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/wit/workitems/{work_item_id}/comments",
            key="comments",
            missing_ok=True,
            api_version=COMMENTS_API_VERSION,
        )

    async def get_work_item_revisions(self, project: str, work_item_id: int) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/wit/workitems/{work_item_id}/revisions"
        )

    async def get_work_item_types(self, project: str) -> list:
        return await self.client.get_list(f"/{project}/_apis/wit/workitemtypes")

    async def get_my_work_items(
        self, project: str, assigned_to_me: bool | None = None
    ) -> list:
        """Work items assigned to (default) or created by the signed-in user."""
        connection = await self.client.get_json("/_apis/connectionData")
        user = connection["authenticatedUser"]
        field = "System.CreatedBy" if assigned_to_me is False else "System.AssignedTo"
        wiql = (
            f"SELECT [System.Id] FROM WorkItems WHERE [{field}] = "
            f"'{user['uniqueName']}' AND [System.TeamProject] = '{project}'"
        )
        return await self.query_work_items(wiql, project)

    async def get_work_items_for_iteration(
        self, project: str, iteration_path: str
    ) -> list:
        wiql = (
            "SELECT [System.Id] FROM WorkItems WHERE [System.IterationPath] = "
            f"'{iteration_path}' AND [System.TeamProject] = '{project}'"
        )
        return await self.query_work_items(wiql, project)

    async def get_query_results(self, project: str, query_id: str) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/wit/queries/{query_id}",
            key="workItems",
            params={"$expand": "all"},
        )

    async def get_queries(self, project: str) -> list:
        return await self.client.get_list(f"/{project}/_apis/wit/queries")
