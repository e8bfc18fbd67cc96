import httpx
import logging
from typing import Optional
from config.settings import TELEGRAM_BOT_TOKEN, TELEGRAM_GROUP_ID
from utils.error_handler import NotificationError

logger = logging.getLogger(__name__)

# Bot API method and multipart field per media kind
MEDIA_METHODS = {
    "photo": ("sendPhoto", "photo", "photo.jpg"),
    "video": ("sendVideo", "video", "video.mp4"),
    "document": ("sendDocument", "document", "file"),
}


class TelegramNotifier:
    """Telegram Bot API client posting to the support operators' group (Async)"""

    BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        token: Optional[str] = TELEGRAM_BOT_TOKEN,
        group_id: Optional[str] = TELEGRAM_GROUP_ID,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.token = token
        self.group_id = group_id
        self.client = client or httpx.AsyncClient(timeout=30.0)
        if not self.configured:
            logger.warning("⚠️ TELEGRAM_BOT_TOKEN/TELEGRAM_GROUP_ID not set, operator notifications disabled")

    @property
    def configured(self) -> bool:
        return bool(self.token and self.group_id)

    def _url(self, method: str) -> str:
        return f"{self.BASE_URL}/bot{self.token}/{method}"

    async def _call(self, method: str, data: dict, files: Optional[dict] = None) -> dict:
        """POST one Bot API method; raises NotificationError on any failure"""
        try:
            if files:
                response = await self.client.post(self._url(method), data=data, files=files)
            else:
                response = await self.client.post(self._url(method), json=data)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                message=f"Telegram {method} failed",
                status_code=e.response.status_code,
                details={"response": e.response.text}
            )
        except (httpx.RequestError, ValueError) as e:
            raise NotificationError(
                message=f"Telegram {method} failed",
                details={"error": str(e)}
            )

        if not payload.get("ok"):
            raise NotificationError(
                message=f"Telegram {method} rejected",
                details={"description": payload.get("description")}
            )
        return payload

    async def send_message(self, text: str) -> bool:
        """
        Send a Markdown text message to the operator group

        Returns:
            bool: True once Telegram accepted the message
        """
        if not self.configured:
            logger.info(f"Telegram not configured, message not sent: {text[:80]}")
            return False

        try:
            await self._call("sendMessage", {
                "chat_id": self.group_id,
                "text": text,
                "parse_mode": "Markdown"
            })
            logger.info("✓ Message sent to Telegram group")
            return True
        except NotificationError as e:
            logger.error(f"❌ Error sending Telegram message: {e.message} {e.details}")
            return False

    async def notify_problem(self, user_id: str, text: str, order_number: Optional[str] = None) -> bool:
        """Report a user's deposit problem to the operators"""
        message = (
            f"🚨 **Deposit Problem Report**\n\n"
            f"**User ID:** {user_id}\n"
            f"**Order Number:** {order_number or 'Not provided'}\n"
            f"**Issue:** {text}"
        )
        return await self.send_message(message)

    async def send_media(self, user_id: str, kind: str, buffer: bytes, caption: str = "", filename: Optional[str] = None) -> bool:
        """
        Upload a photo, video or document to the operator group

        Args:
            user_id: User the media belongs to (prefixed to the caption)
            kind: photo / video / document
            buffer: Raw file bytes
            caption: Optional caption
            filename: Upload filename; defaults per kind
        """
        if kind not in MEDIA_METHODS:
            logger.error(f"❌ Unsupported media kind: {kind}")
            return False
        if not self.configured:
            logger.info(f"Telegram not configured, {kind} from {user_id} not sent")
            return False

        method, field, default_name = MEDIA_METHODS[kind]
        data = {
            "chat_id": self.group_id,
            "caption": f"User: {user_id}\n{caption}".strip(),
        }
        try:
            await self._call(method, data, files={field: (filename or default_name, buffer)})
            logger.info(f"✓ {kind.capitalize()} from {user_id} sent to Telegram group")
            return True
        except NotificationError as e:
            logger.error(f"❌ Error sending {kind} to Telegram: {e.message} {e.details}")
            return False

    async def close(self):
        await self.client.aclose()


_telegram_notifier: Optional[TelegramNotifier] = None


def get_telegram_notifier() -> TelegramNotifier:
    """Get or create the process-wide notifier"""
    global _telegram_notifier
    if _telegram_notifier is None:
        _telegram_notifier = TelegramNotifier()
    return _telegram_notifier
