"""Application settings loaded from environment variables via pydantic-settings.

Values come from (highest priority first) environment variables, then a
``.env`` file in the working directory, then the defaults below.  Field
``ticketmaster_consumer_key`` maps to env var ``TICKETMASTER_CONSUMER_KEY``.

A single ``Settings`` instance is built at startup and passed explicitly to
every provider constructor; providers never read the environment themselves.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ConcertCritic application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Live event provider (Ticketmaster Discovery API) ===
    # Empty key = "not configured": the provider returns no results.
    ticketmaster_consumer_key: str = ""
    ticketmaster_base_url: str = "https://app.ticketmaster.com/discovery/v2"
    ticketmaster_default_page_size: int = 50
    ticketmaster_default_sort: str = "date,asc"

    # === Historical archive provider (setlist.fm) ===
    setlist_fm_api_key: str = ""
    setlist_fm_base_url: str = "https://api.setlist.fm/rest/1.0"
    setlist_fm_user_agent: str = "ConcertCritic/1.0"

    # === Shared HTTP client ===
    http_timeout_seconds: float = 15.0

    # === Persisted catalog ===
    catalog_db_path: str = "data/catalog.db"

    # === Aggregation defaults ===
    default_page_size: int = 20

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_providers(self) -> list[str]:
        """Return the external providers that have credentials configured."""
        providers: list[str] = []
        if self.ticketmaster_consumer_key:
            providers.append("ticketmaster")
        if self.setlist_fm_api_key:
            providers.append("setlistfm")
        return providers
