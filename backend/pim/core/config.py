"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings (read from environment / .env)"""

    # API Settings
    API_TITLE: str = "PIM API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Product information management with GS1 Brasil integration"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False

    # Persistence - Postgres (Supabase) when DATABASE_URL is set, local JSON file otherwise
    DATABASE_URL: Optional[str] = None
    LOCAL_STORE_PATH: str = "pim_products.json"

    # Session provider (Supabase Auth)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""
    AUTH_REQUIRED: bool = False

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://yourdomain.com" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # GS1 Brasil
    # GS1_MODE selects the integration variant: v2 | password | relay
    GS1_MODE: str = "v2"
    GS1_HOST: str = "https://api.gs1br.org"
    GS1_CLIENT_ID: str = ""
    GS1_CLIENT_SECRET: str = ""
    GS1_USERNAME: str = ""
    GS1_PASSWORD: str = ""
    GS1_CAD: str = ""  # company identifier (CAD) at GS1 Brasil
    GS1_RELAY_URL: str = ""
    GS1_RELAY_SECRET: str = ""
    GS1_TOKEN_SAFETY_MARGIN: int = 60  # seconds subtracted from the provider TTL
    GS1_HTTP_TIMEOUT: float = 30.0

    # Google Drive (auto thumbnail from photo folder)
    GOOGLE_API_KEY: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
