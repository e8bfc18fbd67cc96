"""
Yono777 Support Bot
Multilingual support chat with order reconciliation and Telegram escalation
"""

import uvicorn
import logging
from config.settings import PORT, BOT_NAME, DATABASE_URL, DEFAULT_LANGUAGE, ESCALATION_ATTEMPT_LIMIT, DEBUG

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Start the chat API server"""
    logger.info(f"🚀 Starting {BOT_NAME}...")
    logger.info(f"📡 Chat API will listen on port {PORT}")
    logger.info("="*60)
    logger.info("⚙️  Configuration:")
    logger.info(f"  - Database: {DATABASE_URL.split('://')[0]}")
    logger.info(f"  - Default language: {DEFAULT_LANGUAGE}")
    logger.info(f"  - Escalation after {ESCALATION_ATTEMPT_LIMIT} unresolved turns")
    logger.info("="*60)

    uvicorn.run(
        "api.server:app",
        host="0.0.0.0",
        port=PORT,
        reload=False,
        log_level="debug" if DEBUG else "info"
    )


if __name__ == "__main__":
    main()
