"""Run the bot: ``python -m moverbot``."""

import uvicorn

from moverbot.core.config import get_settings
from moverbot.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
