"""Project wikis."""

from .base import BaseService

ROOT_PATH = "/"


class WikiService(BaseService):
    """Wiki operations."""

    def _pages(self, project: str, wiki_identifier: str) -> str:
        return f"/{project}/_apis/wiki/wikis/{wiki_identifier}/pages"

    async def get_wikis(self, project: str) -> list:
        return await self.client.get_list(f"/{project}/_apis/wiki/wikis")

    async def get_wiki(self, project: str, wiki_identifier: str) -> dict:
        return await self.client.get_json(
            f"/{project}/_apis/wiki/wikis/{wiki_identifier}"
        )

    async def list_wiki_pages(
        self, project: str, wiki_identifier: str, path: str | None = None
    ) -> list:
        return await self.client.get_list(
            self._pages(project, wiki_identifier),
            params={"path": path or ROOT_PATH},
        )

    async def get_wiki_page_content(
        self, project: str, wiki_identifier: str, path: str | None = None
    ) -> str:
        page = await self.client.get_json(
            self._pages(project, wiki_identifier),
            params={"path": path or ROOT_PATH, "includeContent": "true"},
        )
        return page.get("content")

    async def create_or_update_wiki_page(
        self,
        project: str,
        wiki_identifier: str,
        path: str,
        content: str,
        comment: str | None = None,
    ) -> dict:
        body = {"content": content}
        if comment:
            body["comment"] = comment
        return await self.client.put_json(
            self._pages(project, wiki_identifier), params={"path": path}, json=body
        )
