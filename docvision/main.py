"""Application entry point for the docvision API server."""

import uvicorn

from docvision.api.app import app, get_config
from docvision.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server."""
    setup_logging(get_config().log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
