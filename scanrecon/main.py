"""Application entry point for the scan reconciliation API server."""

import uvicorn

from scanrecon.api.app import app
from scanrecon.utils.config import load_config
from scanrecon.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host="0.0.0.0", port=5050)


if __name__ == "__main__":
    main()
