"""Operation catalog: one service per area of the Azure DevOps REST API."""

from dataclasses import dataclass

from ..client import DevOpsClient
from .core import CoreService
from .pipelines import PipelineService
from .repos import RepositoryService
from .search import SearchService
from .security import SecurityService
from .test_plans import TestPlanService
from .wiki import WikiService
from .work import WorkService
from .work_items import WorkItemService


@dataclass(frozen=True)
class Services:
    """All catalog services bound to one client."""

    core: CoreService
    work_items: WorkItemService
    repos: RepositoryService
    pipelines: PipelineService
    work: WorkService
    search: SearchService
    wiki: WikiService
    test_plans: TestPlanService
    security: SecurityService

    @classmethod
    def from_client(cls, client: DevOpsClient) -> "Services":
        return cls(
            core=CoreService(client),
            work_items=WorkItemService(client),
            repos=RepositoryService(client),
            pipelines=PipelineService(client),
            work=WorkService(client),
            search=SearchService(client),
            wiki=WikiService(client),
            test_plans=TestPlanService(client),
            security=SecurityService(client),
        )


__all__ = [
    "Services",
    "CoreService",
    "WorkItemService",
    "RepositoryService",
    "PipelineService",
    "WorkService",
    "SearchService",
    "WikiService",
    "TestPlanService",
    "SecurityService",
]
