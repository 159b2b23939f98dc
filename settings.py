from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Server configuration
PORT = config.get("PORT", 8000)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "127.0.0.1")

# Timeout configuration for token, profile and Web API calls
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)

# Spotify endpoints (hardcoded - not user configurable)
AUTHORIZE_ENDPOINT = "https://accounts.spotify.com/authorize"
TOKEN_ENDPOINT = "https://accounts.spotify.com/api/token"
PROFILE_ENDPOINT = "https://api.spotify.com/v1/me"
API_BASE = "https://api.spotify.com/v1"

DEFAULT_SCOPES = [
    "streaming",
    "user-read-email",
    "user-read-private",
    "user-modify-playback-state",
    "user-read-playback-state",
]

# OAuth client configuration
CLIENT_ID = config.get("SPOTIFY_CLIENT_ID", "")
REDIRECT_URI = config.get("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8000/callback")
SCOPES = config.get_list("SPOTIFY_SCOPES", DEFAULT_SCOPES)

# Refresh the access token this many minutes before it expires
TOKEN_REFRESH_BUFFER_MINUTES = config.get("TOKEN_REFRESH_BUFFER_MINUTES", 15)
# Optional cap on access token lifetime (0 disables the cap)
MAX_TOKEN_TTL_SECONDS = config.get("MAX_TOKEN_TTL_SECONDS", 0)
PROACTIVE_REFRESH = config.get("PROACTIVE_REFRESH", False)

# Playback features require this subscription tier
REQUIRED_SUBSCRIPTION_TIER = config.get("REQUIRED_SUBSCRIPTION_TIER", "premium")

# Development mode without a real Spotify login
MOCK_AUTH = config.get("MOCK_AUTH", False)

# Credential storage (cookie jar first, JSON key-value store as fallback)
BASE_PATH = config.get("BASE_PATH", "/")
COOKIE_FILE = config.get("COOKIE_FILE", str(Path.home() / ".walkup-auth" / "cookies.lwp"))
TOKEN_FILE = config.get("TOKEN_FILE", str(Path.home() / ".walkup-auth" / "store.json"))
