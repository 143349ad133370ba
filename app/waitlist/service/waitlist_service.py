from dataclasses import dataclass
from typing import Optional

from app.core.config import Settings, settings as default_settings
from app.core.logger import get_logger
from pkg.notion.client import NotionClient, NotionConfig, NotionError
from pkg.util.validate_email import is_valid_email

logger = get_logger("WaitlistService")

MSG_MISSING_FIELDS = "Please enter both your name and email."
MSG_INVALID_EMAIL = "Please enter a valid email address."
MSG_NOT_CONFIGURED = "A server configuration error occurred."
MSG_SUCCESS = "🎉 You're on the waitlist! We'll let you know first when we launch."
MSG_FAILURE = "Something went wrong while signing you up. Please try again."


@dataclass
class WaitlistResult:
    success: bool
    message: str


class WaitlistService:
    """
    Adds a person to the launch waitlist.

    Each successful call creates a new row in the Notion database; there is no
    deduplication and no retry.
    """

    def __init__(self, settings: Settings = default_settings, notion_client: Optional[NotionClient] = None):
        self.settings = settings
        self._notion_client = notion_client

    def _client(self) -> Optional[NotionClient]:
        if self._notion_client is not None:
            return self._notion_client
        if not self.settings.NOTION_API_KEY or not self.settings.NOTION_DATABASE_ID:
            return None
        return NotionClient(
            NotionConfig(
                api_key=self.settings.NOTION_API_KEY,
                database_id=self.settings.NOTION_DATABASE_ID,
                version=self.settings.NOTION_VERSION,
            )
        )

    async def submit(self, name: str, email: str) -> WaitlistResult:
        name = (name or "").strip()
        email = (email or "").strip()

        if not name or not email:
            return WaitlistResult(False, MSG_MISSING_FIELDS)
        if not is_valid_email(email):
            return WaitlistResult(False, MSG_INVALID_EMAIL)

        client = self._client()
        if client is None:
            logger.error("[waitlist] Notion API credentials not configured")
            return WaitlistResult(False, MSG_NOT_CONFIGURED)

        try:
            await client.create_page(
                {
                    self.settings.NOTION_NAME_PROPERTY: NotionClient.title_property(name),
                    self.settings.NOTION_EMAIL_PROPERTY: NotionClient.email_property(email),
                }
            )
        except NotionError as e:
            logger.error(f"[waitlist] error submitting to waitlist: {e}")
            return WaitlistResult(False, MSG_FAILURE)

        logger.info("[waitlist] submission stored")
        return WaitlistResult(True, MSG_SUCCESS)
