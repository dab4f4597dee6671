import uvicorn

from finance_tracker.app import app
from finance_tracker.core import settings
from finance_tracker.logger import get_logging_config


def main() -> None:
    uvicorn.run(
        app,
        host=settings.get_env("HOST", settings.DEFAULT_HOST),
        port=settings.get_env_int("PORT", settings.DEFAULT_PORT, min_value=1),
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    main()
