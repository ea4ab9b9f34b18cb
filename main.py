from __future__ import annotations

import os

import uvicorn

from tradementor.utils.config import get_settings
from tradementor.utils.logger import get_logger, setup_logging


def main() -> None:
    setup_logging()
    settings = get_settings()

    port = int(os.environ.get("PORT", settings.port))
    host = settings.host

    get_logger(__name__).info("server_starting", host=host, port=port, db_path=settings.db_path)
    uvicorn.run(
        "tradementor.api.webapp:app",
        host=host,
        port=port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
