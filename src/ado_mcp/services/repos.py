"""Git repositories, branches, commits and pull requests."""

import logging

from ..consts import EMPTY_OBJECT_ID
from ..exceptions import NotFoundError
from .base import BaseService

logger = logging.getLogger("ado-mcp.services.repos")

HEADS_PREFIX = "refs/heads/"
DEFAULT_COMMIT_TOP = 10
DEFAULT_SEARCH_TOP = 100
DEFAULT_PR_TOP = 100
DEFAULT_PR_STATUS = "active"

PULL_REQUEST_FIELDS = (
    "pullRequestId",
    "repository",
    "title",
    "description",
    "createdBy",
    "creationDate",
    "status",
    "sourceRefName",
    "targetRefName",
    "isDraft",
)


def branch_summary(ref: dict, object_id_key: str = "objectId") -> dict:
    """Reduce a git ref to the branch fields callers care about."""
    return {
        "name": ref["name"].removeprefix(HEADS_PREFIX),
        "objectId": ref.get(object_id_key),
        "creator": ref.get("creator"),
    }


def pull_request_summary(pr: dict) -> dict:
    return {field: pr.get(field) for field in PULL_REQUEST_FIELDS}


class RepositoryService(BaseService):
    """Git repository and pull request operations."""

    def _repo(self, project: str, repository_id: str) -> str:
        return f"/{project}/_apis/git/repositories/{repository_id}"

    def _pull_request(
        self, project: str, repository_id: str, pull_request_id: int
    ) -> str:
        return f"{self._repo(project, repository_id)}/pullrequests/{pull_request_id}"

    # Repositories

    async def get_repositories(self, project: str) -> list:
        return await self.client.get_list(f"/{project}/_apis/git/repositories")

    async def get_repository_by_id(self, project: str, repository_id: str) -> dict:
        return await self.client.get_json(self._repo(project, repository_id))

    async def get_file_content(
        self, project: str, repository_id: str, path: str
    ) -> str:
        return await self.client.get_json(
            f"{self._repo(project, repository_id)}/items",
            params={"path": path, "includeContent": "true"},
        )

    # Branches

    async def get_branches(self, project: str, repository_id: str) -> list:
        refs = await self.client.get_list(
            f"{self._repo(project, repository_id)}/refs", params={"filter": "heads"}
        )
        return [branch_summary(ref) for ref in refs]

    async def get_my_branches(self, project: str, repository_id: str) -> list:
        """Branches whose ref was created by the signed-in user."""
        connection = await self.client.get_json("/_apis/connectionData")
        user_id = connection["authenticatedUser"]["id"]
        branches = await self.get_branches(project, repository_id)
        return [b for b in branches if (b["creator"] or {}).get("id") == user_id]

    async def get_branch_by_name(
        self, project: str, repository_id: str, branch_name: str
    ) -> dict:
        refs = await self.client.get_list(
            f"{self._repo(project, repository_id)}/refs",
            params={"filter": f"{HEADS_PREFIX}{branch_name}"},
        )
        if not refs:
            raise NotFoundError(
                f"Branch not found: {branch_name}",
                context={"repository_id": repository_id},
            )
        return branch_summary(refs[0])

    async def create_branch(
        self, project: str, repository_id: str, name: str, source_branch: str
    ) -> dict:
        source = await self.get_branch_by_name(project, repository_id, source_branch)
        data = await self.client.post_json(
            f"{self._repo(project, repository_id)}/refs",
            json=[
                {
                    "name": f"{HEADS_PREFIX}{name}",
                    "oldObjectId": EMPTY_OBJECT_ID,
                    "newObjectId": source["objectId"],
                }
            ],
        )
        return branch_summary(data["value"][0], object_id_key="newObjectId")

    # Commits

    async def get_commits(
        self, project: str, repository_id: str, top: int | None = None
    ) -> list:
        return await self.client.get_list(
            f"{self._repo(project, repository_id)}/commits",
            params={"$top": top or DEFAULT_COMMIT_TOP},
        )

    async def search_commits(
        self,
        project: str,
        repository_id: str,
        search_criteria: dict,
        top: int | None = None,
    ) -> list:
        data = await self.client.post_json(
            f"{self._repo(project, repository_id)}/commits",
            params={"$top": top or DEFAULT_SEARCH_TOP},
            json=search_criteria,
        )
        return (data or {}).get("value") or []

    # Pull requests

    async def get_pull_requests(
        self,
        project: str,
        repository_id: str | None = None,
        top: int | None = None,
        status: str | None = None,
    ) -> list:
        prs = await self.client.get_list(
            f"/{project}/_apis/git/pullrequests",
            params={
                "$top": top or DEFAULT_PR_TOP,
                "searchCriteria.status": status or DEFAULT_PR_STATUS,
                "searchCriteria.repositoryId": repository_id,
            },
        )
        return [pull_request_summary(pr) for pr in prs]

    async def get_pull_request_by_id(
        self, project: str, repository_id: str, pull_request_id: int
    ) -> dict:
        """Get one pull request. A missing pull request is an error, not []."""
        pr = await self.client.get_json(
            self._pull_request(project, repository_id, pull_request_id)
        )
        return pull_request_summary(pr)

    async def list_pull_requests_by_commits(
        self, project: str, repository_id: str, commit_ids: list[str]
    ) -> list:
        data = await self.client.post_json(
            f"{self._repo(project, repository_id)}/pullrequests",
            json={"commitIds": commit_ids},
        )
        return (data or {}).get("value") or []

    async def create_pull_request(
        self,
        project: str,
        repository_id: str,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str | None = None,
    ) -> dict:
        return await self.client.post_json(
            f"{self._repo(project, repository_id)}/pullrequests",
            json={
                "sourceRefName": f"{HEADS_PREFIX}{source_branch}",
                "targetRefName": f"{HEADS_PREFIX}{target_branch}",
                "title": title,
                "description": description,
            },
        )

    async def update_pull_request(
        self, project: str, repository_id: str, pull_request_id: int, updates: dict
    ) -> dict:
        return await self.client.patch_json(
            self._pull_request(project, repository_id, pull_request_id), json=updates
        )

    async def update_pull_request_reviewers(
        self, project: str, repository_id: str, pull_request_id: int, reviewers: list
    ) -> dict:
        return await self.client.post_json(
            f"{self._pull_request(project, repository_id, pull_request_id)}/reviewers",
            json=reviewers,
        )

    async def list_pull_request_threads(
        self, project: str, repository_id: str, pull_request_id: int
    ) -> list:
        return await self.client.get_list(
            f"{self._pull_request(project, repository_id, pull_request_id)}/threads"
        )

    async def list_pull_request_thread_comments(
        self, project: str, repository_id: str, pull_request_id: int, thread_id: int
    ) -> list:
        pr = self._pull_request(project, repository_id, pull_request_id)
        return await self.client.get_list(f"{pr}/threads/{thread_id}/comments")

    async def create_pull_request_thread(
        self, project: str, repository_id: str, pull_request_id: int, thread: dict
    ) -> dict:
        return await self.client.post_json(
            f"{self._pull_request(project, repository_id, pull_request_id)}/threads",
            json=thread,
        )

    async def update_pull_request_thread(
        self,
        project: str,
        repository_id: str,
        pull_request_id: int,
        thread_id: int,
        updates: dict,
    ) -> dict:
        pr = self._pull_request(project, repository_id, pull_request_id)
        return await self.client.patch_json(f"{pr}/threads/{thread_id}", json=updates)

    async def reply_to_pull_request_comment(
        self,
        project: str,
        repository_id: str,
        pull_request_id: int,
        thread_id: int,
        comment: dict,
    ) -> dict:
        pr = self._pull_request(project, repository_id, pull_request_id)
        return await self.client.post_json(
            f"{pr}/threads/{thread_id}/comments", json=comment
        )
