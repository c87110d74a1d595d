"""Worker settings — loaded from environment variables."""

from __future__ import annotations

from pydantic import model_validator
from pydantic_settings import BaseSettings

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    # ── Server ──────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    DEBUG: bool = False

    # ── Logging ─────────────────────────────────────────────────
    # "text" for local dev, "json" for log shippers.
    LOG_FORMAT: str = "text"
    LOG_LEVEL: str = "INFO"

    # ── Worker auth ─────────────────────────────────────────────
    # Shared secret between the management app and this worker.
    # When set, every endpoint except /health requires
    #   Authorization: Bearer <WORKER_SECRET>
    # and outgoing callbacks carry the same header.
    WORKER_SECRET: str | None = None

    # ── Browser pool ────────────────────────────────────────────
    # Max concurrent isolated sessions.  Requests beyond this are rejected
    # immediately; the caller is responsible for retrying later.
    POOL_MAX_SESSIONS: int = 3

    BROWSER_HEADLESS: bool = True
    BROWSER_VIEWPORT_WIDTH: int = 1280
    BROWSER_VIEWPORT_HEIGHT: int = 720
    BROWSER_USER_AGENT: str = _DEFAULT_USER_AGENT
    BROWSER_LAUNCH_ARGS: list[str] = ["--no-sandbox", "--disable-setuid-sandbox"]

    # ── Callbacks ───────────────────────────────────────────────
    # Timeout for step_complete / execution_complete POSTs to callbackUrl.
    CALLBACK_TIMEOUT_SECONDS: float = 10.0

    # ── Capture ─────────────────────────────────────────────────
    # Upper bound on interactive elements returned by POST /capture.
    CAPTURE_MAX_ELEMENTS: int = 200

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @model_validator(mode="after")
    def _auto_configure(self) -> "Settings":
        """Clamp the pool size to at least one session."""
        if self.POOL_MAX_SESSIONS < 1:
            object.__setattr__(self, "POOL_MAX_SESSIONS", 1)
        return self

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.BROWSER_VIEWPORT_WIDTH, "height": self.BROWSER_VIEWPORT_HEIGHT}


settings = Settings()
