import logging
import os

import uvicorn


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


if __name__ == "__main__":
    configure_logging(os.environ.get("TRACKER_LOG_LEVEL", "INFO"))

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3000"))

    logging.getLogger(__name__).info(
        "NFT Activity Tracker on port %d, data directory %s",
        port, os.environ.get("TRACKER_DATA_DIR", "./data"),
    )

    uvicorn.run(
        "tracker.api.server:app",
        host=host,
        port=port,
    )
