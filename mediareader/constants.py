API_ENDPOINT = "https://open.bigmodel.cn/api/paas/v4/chat/completions"

# Items sent concurrently per batch.
API_BATCH_SIZE = 5
# Batches per minute.
API_RATE_LIMIT = 3
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0

SUPPORTED_MODELS = ("glm-4v-plus", "glm-4v")
DEFAULT_MODEL = SUPPORTED_MODELS[0]
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 300
DEFAULT_REQUEST_TIMEOUT = 120.0

LARGE_FILE_WARNING_BYTES = 20 * 1024 * 1024


def inter_batch_delay(rate_limit: int = API_RATE_LIMIT) -> float:
    """Seconds to wait between batches so that at most ``rate_limit`` batches start per minute."""
    return 60.0 / max(1, rate_limit)
