import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"


@dataclass
class NotionConfig:
    api_key: str
    database_id: str
    version: str = "2022-06-28"
    base_url: str = NOTION_API_URL
    timeout: float = 15.0


class NotionError(Exception):
    """Base exception for Notion API errors"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotionClient:
    def __init__(self, config: NotionConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.config = config
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Notion-Version": self.config.version,
        }

    async def create_page(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Create one page (database row) under the configured database."""
        body = {
            "parent": {"database_id": self.config.database_id},
            "properties": properties,
        }
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                res = await client.post(f"{self.config.base_url}/pages", json=body, headers=self._headers())
        except httpx.RequestError as e:
            raise NotionError(f"Notion request failed: {type(e).__name__}") from e

        if not res.is_success:
            try:
                detail = res.json().get("code", "")
            except (ValueError, AttributeError):
                detail = ""
            logger.error(f"Notion API error: status={res.status_code} code={detail}")
            raise NotionError(f"Notion API error: {res.status_code}", status_code=res.status_code)
        try:
            return res.json()
        except ValueError as e:
            raise NotionError("Notion API returned an unreadable body", status_code=res.status_code) from e

    @staticmethod
    def title_property(text: str) -> Dict[str, Any]:
        return {"title": [{"text": {"content": text}}]}

    @staticmethod
    def email_property(email: str) -> Dict[str, Any]:
        return {"email": email}
