import os
from dotenv import load_dotenv

# Force reload of .env file
load_dotenv(override=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated list, "*" allows every origin
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

# ChatGPT share import
SHARE_FETCH_TIMEOUT_SECONDS = float(os.getenv("SHARE_FETCH_TIMEOUT_SECONDS", "15"))
SHARE_MAX_RESPONSE_BYTES = int(os.getenv("SHARE_MAX_RESPONSE_BYTES", str(5 * 1024 * 1024)))
SHARE_USER_AGENT = os.getenv(
    "SHARE_USER_AGENT",
    "Mozilla/5.0 (compatible; CookIterate/1.0; +https://github.com)",
)
