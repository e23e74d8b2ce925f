import os
from dotenv import load_dotenv

load_dotenv()

# ───── Auth ─────
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

# ───── Shingling & matching ─────
SHINGLE_SIZE = int(os.getenv("SHINGLE_SIZE", "8"))
MIN_MATCH_CHARS = int(os.getenv("MIN_MATCH_CHARS", str(SHINGLE_SIZE * 5)))
SNIPPET_PADDING = int(os.getenv("SNIPPET_PADDING", "80"))

# ───── Risk thresholds (similarity percent) ─────
HIGH_RISK_THRESHOLD = int(os.getenv("HIGH_RISK_THRESHOLD", "45"))
MEDIUM_RISK_THRESHOLD = int(os.getenv("MEDIUM_RISK_THRESHOLD", "20"))

# ───── Hard caps ─────
MAX_TEXT_CHARS = int(os.getenv("MAX_TEXT_CHARS", "20000"))
MAX_SOURCES = int(os.getenv("MAX_SOURCES", "32"))
MAX_SOURCE_CHARS = int(os.getenv("MAX_SOURCE_CHARS", "20000"))

# ───── Web search ─────
WEB_SEARCH_ENABLED = os.getenv("WEB_SEARCH_ENABLED", "true").lower() in {"1", "true", "yes"}
API_KEYS = os.getenv("API_KEYS", "").split(",") if os.getenv("API_KEYS") else []
SEARCH_ENGINE_IDS = os.getenv("SEARCH_ENGINE_IDS", "").split(",") if os.getenv("SEARCH_ENGINE_IDS") else []

MAX_QUERIES_PER_SUBMISSION = int(os.getenv("MAX_QUERIES_PER_SUBMISSION", "3"))
RESULTS_PER_QUERY = int(os.getenv("RESULTS_PER_QUERY", "4"))
FETCH_WORKER_CAP = int(os.getenv("FETCH_WORKER_CAP", "8"))
MIN_PAGE_CHARS = int(os.getenv("MIN_PAGE_CHARS", "400"))

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "6"))
SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", "6"))

# ───── Query derivation ─────
MIN_WORDS_PER_SENTENCE = int(os.getenv("MIN_WORDS_PER_SENTENCE", "4"))
MIN_SENTENCE_LENGTH = int(os.getenv("MIN_SENTENCE_LENGTH", "30"))
MAX_QUERY_CHARS = int(os.getenv("MAX_QUERY_CHARS", "200"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
