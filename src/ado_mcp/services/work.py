"""Boards and planning: iterations, areas, capacity, boards and backlogs.

Most of these resources only exist once a team has been set up for boards,
so the listing calls treat a 404 as "nothing provisioned yet".
"""

from .base import BaseService

CLASSIFICATION_DEPTH = 2


class WorkService(BaseService):
    """Team planning operations."""

    def _team_settings(self, project: str, team: str) -> str:
        return f"/{project}/{team}/_apis/work/teamsettings/iterations"

    async def get_iterations(self, project: str) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/wit/classificationnodes/iterations",
            key="children",
            missing_ok=True,
            params={"$depth": CLASSIFICATION_DEPTH},
        )

    async def create_iterations(self, project: str, iterations: list) -> list:
        data = await self.client.post_json(
            f"/{project}/_apis/wit/classificationnodes/iterations",
            json={"value": iterations},
        )
        return (data or {}).get("value") or []

    async def get_team_iterations(self, project: str, team: str) -> list:
        return await self.client.get_list(self._team_settings(project, team))

    async def assign_iterations(
        self, project: str, team: str, iteration_ids: list[str]
    ) -> dict:
        return await self.client.post_json(
            self._team_settings(project, team),
            json=[{"id": iteration_id} for iteration_id in iteration_ids],
        )

    async def get_iteration_capacities(self, project: str, iteration_id: str) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/work/teamsettings/iterations/{iteration_id}/capacities"
        )

    async def get_team_capacity(
        self, project: str, team: str, iteration_id: str
    ) -> dict:
        return await self.client.get_json(
            f"{self._team_settings(project, team)}/{iteration_id}/capacities"
        )

    async def update_team_capacity(
        self, project: str, team: str, iteration_id: str, capacities: list
    ) -> dict:
        return await self.client.put_json(
            f"{self._team_settings(project, team)}/{iteration_id}/capacities",
            json=capacities,
        )

    async def get_areas(self, project: str) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/wit/classificationnodes/areas",
            key="children",
            missing_ok=True,
            params={"$depth": CLASSIFICATION_DEPTH},
        )

    async def get_boards(self, project: str, team: str) -> list:
        return await self.client.get_list(
            f"/{project}/{team}/_apis/work/boards", missing_ok=True
        )

    async def list_backlogs(self, project: str, team: str) -> list:
        return await self.client.get_list(
            f"/{project}/{team}/_apis/work/backlogs", missing_ok=True
        )

    async def list_backlog_work_items(
        self, project: str, team: str, backlog_id: str
    ) -> list:
        return await self.client.get_list(
            f"/{project}/{team}/_apis/work/backlogs/{backlog_id}/workitems",
            missing_ok=True,
        )
