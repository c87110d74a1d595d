"""``python -m rpaworker`` — serve the worker with uvicorn."""

import uvicorn

from rpaworker.config import settings


def main() -> None:
    uvicorn.run(
        "rpaworker.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level="debug" if settings.DEBUG else settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
