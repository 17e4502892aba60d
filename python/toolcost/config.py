"""Configuration constants for the toolcost benchmarks."""

# Pricing configuration (Claude Sonnet input pricing, USD)
DEFAULT_PRICE_PER_MILLION_TOKENS = 3.0
# ~50 requests/day over 20 working days
DEFAULT_MONTHLY_REQUESTS_PER_USER = 1_000

# Fair workflow accounting
META_TOOL_EXPOSURES = 3  # search -> describe -> execute
DEFAULT_SEARCH_RESPONSE_TOKENS = 150
DEFAULT_DESCRIBE_RESPONSE_TOKENS = 150

# Live measurement
DEFAULT_AVG_TOKENS_PER_OPERATION = 140  # calibrated from static catalogs
DEFAULT_SEARCH_QUERY = "create"
DEFAULT_SEARCH_LIMIT = 50
DESCRIBE_SAMPLE_SIZE = 5

# Timeout configuration (in seconds)
DEFAULT_REQUEST_TIMEOUT = 30

# Protocol configuration
SUPPORTED_PROTOCOL_VERSION = "2024-11-05"
CLIENT_NAME = "toolcost-benchmark"
CLIENT_VERSION = "1.0.0"

# Exact tokenizer
ENCODING_NAME = "cl100k_base"

# Endpoint templates
PRODUCTION_URL_TEMPLATE = "https://mcp.air-lock.ai/org/{slug}"
STAGING_URL_TEMPLATE = "https://mcp.staging.air-lock.ai/org/{slug}"
DEV_URL_TEMPLATE = "https://mcp.{stage}.dev.air-lock.ai/org/{slug}"

# Environment variables
TOKEN_ENV_VAR = "TOOLCOST_MCP_TOKEN"
PRICE_ENV_VAR = "TOOLCOST_PRICE_PER_MILLION"
MONTHLY_REQUESTS_ENV_VAR = "TOOLCOST_MONTHLY_REQUESTS"
