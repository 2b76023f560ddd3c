import os

import uvicorn

from segment_weather.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="segment_weather_api")
    logger.info("Starting segment weather API")

    uvicorn.run(
        "segment_weather.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
