"""Projects, teams and identities."""

import logging

from .base import BaseService

logger = logging.getLogger("ado-mcp.services.core")


class CoreService(BaseService):
    """Organization-level lookups."""

    async def get_projects(self) -> list:
        return await self.client.get_list("/_apis/projects")

    async def get_teams(
        self,
        project: str,
        mine: bool | None = None,
        top: int | None = None,
        skip: int | None = None,
    ) -> list:
        params = {
            "$mine": str(mine).lower() if mine is not None else None,
            "$top": top,
            "$skip": skip,
        }
        return await self.client.get_list(
            f"/_apis/projects/{project}/teams", params=params
        )

    async def get_team_members(self, project: str, team: str) -> list:
        """List team members; a team without a member listing yields []."""
        return await self.client.get_list(
            f"/_apis/projects/{project}/teams/{team}/members", missing_ok=True
        )

    async def search_identities(self, search_filter: str) -> dict:
        return await self.client.get_json(
            f"{self.client.identity_url}/_apis/identities",
            params={"searchFilter": "General", "filterValue": search_filter},
        )

    async def get_current_user(self) -> dict:
        data = await self.client.get_json("/_apis/connectionData")
        return data["authenticatedUser"]
