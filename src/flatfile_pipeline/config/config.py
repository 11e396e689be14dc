import os
from dotenv import load_dotenv

# Load local .env (for development only)
load_dotenv()

# ─── Defaults ──────────────────────────────────────────────────────────────────────
DEFAULT_API_BASE_URL             = "https://platform.flatfile.com/api/v1"
DEFAULT_WEBHOOK_URL              = "https://webhook.site/1234"
DEFAULT_HTTP_TIMEOUT_SECONDS     = "30"

# ─── Event Topics & Job Types (static constants) ───────────────────────────────────
TOPIC_JOB_READY                  = "job:ready"
TOPIC_COMMIT_CREATED             = "commit:created"
JOB_SPACE_CONFIGURE              = "space:configure"
JOB_WORKBOOK_SUBMIT              = "workbook:submitAction"

# ─── Submit Job Defaults ───────────────────────────────────────────────────────────
SUBMIT_ACK_PROGRESS              = 10
SUBMIT_ACK_INFO                  = "Starting job to submit action to webhook"
SUBMIT_METHOD_TAG                = "requests"


def read_env():
    """
    Read every supported environment variable.

    Called on each use so a running process picks up changes; values are raw
    strings (or None) and are validated by config_loader.
    """
    return {
        # Flatfile platform
        "FLATFILE_API_KEY": os.getenv("FLATFILE_API_KEY"),
        "FLATFILE_API_BASE_URL": os.getenv("FLATFILE_API_BASE_URL") or DEFAULT_API_BASE_URL,
        # Webhook destination
        "WEBHOOK_URL": os.getenv("WEBHOOK_URL") or DEFAULT_WEBHOOK_URL,
        # Runtime
        "HTTP_TIMEOUT_SECONDS": os.getenv("HTTP_TIMEOUT_SECONDS") or DEFAULT_HTTP_TIMEOUT_SECONDS,
        "ENVIRONMENT": os.getenv("ENVIRONMENT", ""),
        "LOG_LEVEL": os.getenv("LOG_LEVEL"),
        "K_SERVICE": os.getenv("K_SERVICE", ""),  # Cloud Run service name
    }
