# =============================================================================
# Rasterization Defaults
# =============================================================================

DEFAULT_MAX_PAGES = 3  # Early sheets carry the plan content; later ones are details
DEFAULT_TARGET_DPI = 200
DEFAULT_MAX_PIXELS_PER_PAGE = 10_000_000  # ~2550x3900 px
MIN_RENDER_DPI = 1
PDF_POINTS_PER_INCH = 72.0
RASTER_MIME_TYPE = "image/png"


# =============================================================================
# Source Fetch Limits
# =============================================================================

MAX_SOURCE_SIZE_MB = 50  # Maximum size of a fetched document
FETCH_MAX_REDIRECTS = 3
FETCH_CHUNK_SIZE = 64 * 1024


# =============================================================================
# External Service Timeouts (seconds)
# =============================================================================

FETCH_TIMEOUT_SECONDS = 30  # Timeout for downloading the source document
RENDER_TIMEOUT_SECONDS = 60  # Timeout for rasterizing the rendered page prefix
LLM_REQUEST_TIMEOUT_SECONDS = 120  # Vision requests on multi-page input are slow


# =============================================================================
# Extraction Backend
# =============================================================================

DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_LLM_MODEL = "gpt-4.1"
LLM_RESPONSES_PATH = "/responses"


# =============================================================================
# Request Validation Limits
# =============================================================================

RESOURCE_URL_MAX_LENGTH = 4096
DECLARED_TYPE_MAX_LENGTH = 64
CONTEXT_FIELD_MAX_LENGTH = 500


# =============================================================================
# Error Handling
# =============================================================================

ERROR_BODY_MAX_CHARS = 200  # Maximum chars from error response bodies


# =============================================================================
# Service
# =============================================================================

SERVICE_VERSION = "1.0.0"
