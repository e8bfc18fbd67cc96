import os
from dotenv import load_dotenv

load_dotenv()

# Database Settings
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./support_bot.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Telegram operator channel
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_GROUP_ID = os.getenv("TELEGRAM_GROUP_ID")

# Bot Settings
BOT_NAME = os.getenv("BOT_NAME", "Yono777 Support")
PORT = int(os.getenv("PORT", 3000))
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "english")

# Conversation Settings
ESCALATION_ATTEMPT_LIMIT = int(os.getenv("ESCALATION_ATTEMPT_LIMIT", 3))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", 10000))
SESSION_TTL = int(os.getenv("SESSION_TTL", 86400))  # Redis mirror TTL (24 hours)
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 50))
MAX_RESPONSE_SENTENCES = int(os.getenv("MAX_RESPONSE_SENTENCES", 3))

# Simulated typing delay (seconds per character, capped)
TYPING_DELAY_PER_CHAR = float(os.getenv("TYPING_DELAY_PER_CHAR", 0.01))
TYPING_DELAY_MAX = float(os.getenv("TYPING_DELAY_MAX", 3.0))

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Staff console
STAFF_USERNAME = os.getenv("STAFF_USERNAME", "admin")
STAFF_PASSWORD = os.getenv("STAFF_PASSWORD", "admin123")
