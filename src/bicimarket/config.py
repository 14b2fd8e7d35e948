from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 8001
    reload: bool = False

    # Hosted backend (query / auth / storage)
    backend_url: str = "http://localhost:54321"
    backend_anon_key: str = ""
    backend_request_timeout: int = 30
    storage_bucket: str = "bike-images"

    # Catalog
    bike_category_id: int = 1
    component_category_id: int = 2
    other_label: str = "Otro"

    # Autocomplete
    autocomplete_limit: int = 50
    autocomplete_debounce_ms: int = 300

    # Browse
    listings_limit: int = 100

    # Publish
    price_min: float = 1
    price_max: float = 999_999
    max_images: int = 10

    # Session
    session_refresh_interval: int = 60    # seconds between expiry checks
    session_refresh_margin: int = 120     # refresh when fewer seconds remain

    @property
    def backend_enabled(self) -> bool:
        return bool(self.backend_url and self.backend_anon_key)

    # Log
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
