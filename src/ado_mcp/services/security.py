"""Advanced Security alerts."""

from ..consts import ALERTS_API_VERSION
from .base import BaseService

DEFAULT_ALERT_TOP = 100


class SecurityService(BaseService):
    """Advanced Security operations."""

    def _alerts(self, project: str, repository_id: str) -> str:
        return f"/{project}/_apis/alert/repositories/{repository_id}/alerts"

    async def get_advanced_security_alerts(
        self,
        project: str,
        repository_id: str,
        severity: str | None = None,
        state: str | None = None,
        top: int | None = None,
    ) -> list:
        """List alerts; repositories without Advanced Security yield []."""
        return await self.client.get_list(
            self._alerts(project, repository_id),
            missing_ok=True,
            api_version=ALERTS_API_VERSION,
            params={
                "$top": top or DEFAULT_ALERT_TOP,
                "severity": severity,
                "state": state,
            },
        )

    async def get_advanced_security_alert_details(
        self, project: str, repository_id: str, alert_id: str
    ) -> dict:
        return await self.client.get_json(
            f"{self._alerts(project, repository_id)}/{alert_id}",
            api_version=ALERTS_API_VERSION,
        )
