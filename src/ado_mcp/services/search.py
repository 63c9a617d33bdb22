"""Code, work item and wiki search (served from the search host)."""

from .base import BaseService

DEFAULT_SEARCH_TOP = 10


class SearchService(BaseService):
    """Full-text search operations."""

    async def _search(self, kind: str, search_text: str, top, filters: dict) -> list:
        body = {"searchText": search_text, "$top": top or DEFAULT_SEARCH_TOP}
        filters = {name: values for name, values in filters.items() if values}
        if filters:
            body["filters"] = filters
        data = await self.client.post_json(
            f"{self.client.search_url}/_apis/search/{kind}searchresults", json=body
        )
        return (data or {}).get("results") or []

    async def search_code(
        self,
        search_text: str,
        project: str | None = None,
        repository: str | None = None,
        top: int | None = None,
    ) -> list:
        return await self._search(
            "code",
            search_text,
            top,
            {
                "Project": [project] if project else None,
                "Repository": [repository] if repository else None,
            },
        )

    async def search_work_items(
        self, search_text: str, project: str | None = None, top: int | None = None
    ) -> list:
        return await self._search(
            "workitem",
            search_text,
            top,
            {"System.TeamProject": [project] if project else None},
        )

    async def search_wiki(
        self,
        search_text: str,
        project: str | None = None,
        wiki_identifier: str | None = None,
        top: int | None = None,
    ) -> list:
        return await self._search(
            "wiki",
            search_text,
            top,
            {
                "Project": [project] if project else None,
                "Wiki": [wiki_identifier] if wiki_identifier else None,
            },
        )
