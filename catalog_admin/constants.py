"""Constants shared by views, templates and the API client."""

DEFAULT_BRAND_COLOR = "#1f3a5f"

DEFAULT_API_BASE_URL = "http://localhost:4000/api"
DEFAULT_API_TIMEOUT = 10.0
DEFAULT_STORAGE_BUCKET = "content"
DEFAULT_SIGNED_URL_TTL = 3600
DEFAULT_SIGNED_URL_CACHE_SIZE = 512

# Auth endpoints
API_AUTH_LOGIN = "/auth/login"
API_AUTH_LOGOUT = "/auth/logout"
API_AUTH_ME = "/auth/me"

# Catalog endpoints
API_CATEGORY = "/category"
API_PRODUCT = "/product"
API_PRODUCT_IMAGE = "/product-image"
API_CONTACT = "/contact"
API_PROFILE = "/profile"
API_MEDIA = "/media"

# Pixels of left offset per tree level in the category table.
INDENT_WIDTH = 24

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 500

SESSION_TOKEN_KEY = "auth_token"
SESSION_USER_KEY = "auth_user"
SESSION_EXPANDED_KEY = "category_expanded"
