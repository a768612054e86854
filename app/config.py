import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_PATH = os.getenv("DATABASE_PATH", "clinic_intake.db")

DATABASE_URL = os.getenv("DATABASE_URL", "")
DATABASE_MAX_CONNECTIONS = int(os.getenv("DATABASE_MAX_CONNECTIONS", "5"))
SEED_FAMILY_PROBLEMS = os.getenv("SEED_FAMILY_PROBLEMS", "true").lower() in ("1", "true", "yes", "on")

# Staff search page size
SEARCH_PAGE_SIZE = int(os.getenv("SEARCH_PAGE_SIZE", "50"))

# Placeholder stored when a required text field reaches the pipeline blank
PLACEHOLDER_TEXT = os.getenv("PLACEHOLDER_TEXT", "N/A")

# Identity provider (GoTrue-compatible REST API)
AUTH_PROVIDER_URL = os.getenv("AUTH_PROVIDER_URL", "")
AUTH_API_KEY = os.getenv("AUTH_API_KEY", "")
AUTH_TIMEOUT_SECONDS = float(os.getenv("AUTH_TIMEOUT_SECONDS", "10"))

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "staff_session")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in ("1", "true", "yes", "on")

# Used to build the password-reset link sent by the identity provider
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

# Intake drafts idle longer than this are dropped from memory
INTAKE_DRAFT_TTL_SECONDS = int(os.getenv("INTAKE_DRAFT_TTL_SECONDS", str(24 * 60 * 60)))

# Shortest new password accepted by the reset flow
MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))
