import os
from dotenv import load_dotenv

load_dotenv()

# EMBED PROVIDER
EMBED_HOST = os.getenv("EMBED_HOST", "thrfive.io")
EMBED_ORIGIN = f"https://{EMBED_HOST}"
PARTNER_REFERER = os.getenv("PARTNER_REFERER", "https://tamildhool.art/")

# OUTBOUND HTTP
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64; rv:143.0) Gecko/20100101 Firefox/143.0",
)
FETCH_TIMEOUT = int(os.getenv("FETCH_TIMEOUT", "15"))

# SERVER
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
