"""Run the status server: python -m statusbot"""

import uvicorn

from statusbot.core.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "statusbot.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
