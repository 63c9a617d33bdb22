"""Builds and pipelines."""

from .base import BaseService

DEFAULT_BUILD_TOP = 10
DEFAULT_RUN_TOP = 10


class PipelineService(BaseService):
    """Build and pipeline operations."""

    async def get_builds(
        self, project: str, definition_id: int | None = None, top: int | None = None
    ) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/build/builds",
            params={"$top": top or DEFAULT_BUILD_TOP, "definitions": definition_id},
        )

    async def get_build_status(self, project: str, build_id: int) -> dict:
        return await self.client.get_json(f"/{project}/_apis/build/builds/{build_id}")

    async def get_build_log(self, project: str, build_id: int) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/build/builds/{build_id}/logs"
        )

    async def get_build_log_by_id(
        self, project: str, build_id: int, log_id: int
    ) -> str:
        return await self.client.get_json(
            f"/{project}/_apis/build/builds/{build_id}/logs/{log_id}"
        )

    async def get_build_changes(self, project: str, build_id: int) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/build/builds/{build_id}/changes"
        )

    async def update_build_stage(
        self, project: str, build_id: int, stage_ref_name: str, state: str
    ) -> dict:
        return await self.client.patch_json(
            f"/{project}/_apis/build/builds/{build_id}/stages/{stage_ref_name}",
            json={"state": state},
        )

    async def get_build_definitions(self, project: str) -> list:
        return await self.client.get_list(f"/{project}/_apis/build/definitions")

    async def get_build_definition_revisions(
        self, project: str, definition_id: int
    ) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/build/definitions/{definition_id}/revisions"
        )

    async def get_pipelines(self, project: str) -> list:
        """List pipelines; a project without pipelines enabled yields []."""
        return await self.client.get_list(
            f"/{project}/_apis/pipelines", missing_ok=True
        )

    async def create_pipeline(
        self, project: str, name: str, configuration: dict
    ) -> dict:
        return await self.client.post_json(
            f"/{project}/_apis/pipelines",
            json={"name": name, "configuration": configuration},
        )

    async def run_pipeline(
        self, project: str, pipeline_id: int, parameters: dict | None = None
    ) -> dict:
        return await self.client.post_json(
            f"/{project}/_apis/pipelines/{pipeline_id}/runs",
            json={"parameters": parameters},
        )

    async def get_pipeline_run(
        self, project: str, pipeline_id: int, run_id: int
    ) -> dict:
        return await self.client.get_json(
            f"/{project}/_apis/pipelines/{pipeline_id}/runs/{run_id}"
        )

    async def list_pipeline_runs(
        self, project: str, pipeline_id: int, top: int | None = None
    ) -> list:
        return await self.client.get_list(
            f"/{project}/_apis/pipelines/{pipeline_id}/runs",
            params={"$top": top or DEFAULT_RUN_TOP},
        )
