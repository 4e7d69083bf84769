import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

DB_URL = os.getenv("DB_URL", f"sqlite:///{(BASE_DIR / 'casefile.db').as_posix()}")
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "database").lower()
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() == "true"

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "60"))
USE_MOCK_LLM = os.getenv("USE_MOCK_LLM", "false").lower() == "true"

# Activity entries are attributed to this user when a case has no lead detective.
DEFAULT_USER_ID = int(os.getenv("DEFAULT_USER_ID", "1"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
