"""Shared defaults for vibeflow."""

DEFAULT_LLM_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_GENERATION_MODEL = "google/gemini-2.5-pro-exp-03-25:free"
DEFAULT_RESEARCH_MODEL = "perplexity/sonar-deep-research"
DEFAULT_LLM_TIMEOUT_SECONDS = 90.0
DEFAULT_LLM_MAX_TOKENS = 4000
HTTP_REFERER = "https://vibeflow.local"
DEFAULT_MODELS_URL = "https://models.github.ai/inference"

DEFAULT_JOB_TTL_SECONDS = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60

DEFAULT_STEP_TIMEOUT_SECONDS = 10 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

DEFAULT_SUBSCRIBER_QUEUE_SIZE = 100
REDIS_CHANNEL_PREFIX = "vibeflow:progress:"

RESEARCH_FAILED_PLACEHOLDER = "*Research on this topic failed.*"
DEFAULT_OUTPUT_DIR = "VibeCoderOutput"
