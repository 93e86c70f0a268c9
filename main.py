import asyncio

import uvicorn

from core.config import settings
from core.logger import setup_logging, logger
from db.session import Database


async def start_api():
    from api.main import create_app

    database = Database.from_settings(settings)
    app = create_app(settings=settings, database=database)
    config = uvicorn.Config(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
    )
    server = uvicorn.Server(config)
    try:
        await server.serve()
    finally:
        await database.dispose()


async def main():
    # Setup structured logging
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    # For scaling run 'uvicorn api.main:create_app --factory' directly instead.
    logger.info("Starting API...", env=settings.ENV, port=settings.API_PORT)
    await start_api()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Application stopped.")
