from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Client configuration loaded from environment variables."""

    api_base_url: str  # Base URL of the task-management API, e.g. https://tasks.example.com/api
    debug: bool = False
    status_check_interval_seconds: float = 300
    local_check_interval_seconds: float = 10
    warning_threshold_ms: int = 120_000
    default_idle_timeout_ms: int = 30 * 60 * 1000  # Assumed idle budget until the first status response
    landing_path: str = "/"
    login_path: str = "/auth/login"
    logout_path: str = "/auth/logout"
    session_status_path: str = "/auth/session-status"
    warning_header: str = "x-session-warning"
    expires_in_header: str = "x-session-expires-in"
    # Credentials for the headless runner (optional)
    email: str | None = None
    password: str | None = None

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SESSIONGUARD_",
        "extra": "ignore",
    }
