import logging

import uvicorn

from pdf_merge_compress.settings import Settings
from pdf_merge_compress.logging_setup import setup_logging

from web.app import create_app


def main() -> None:
    settings = Settings.from_env()

    setup_logging(settings.logs_dir, level=settings.log_level)

    log = logging.getLogger("pdf_merge_compress.main")

    app = create_app(settings)

    log.info("Server running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
