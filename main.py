import os
import logging
from dotenv import find_dotenv, load_dotenv

# Сразу грузим .env
load_dotenv(find_dotenv())

# Базовая настройка логгера (единая для всего проекта)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
)

import uvicorn

from web_app.web_main import app


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logging.info("✅ API starting on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    try:
        main()
    except Exception:
        logging.exception("Fatal error in main")
        raise
