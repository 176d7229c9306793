"""Command line interface for running the API server."""
import logging
import os

import uvicorn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def main():
    """Run the API server until interrupted."""
    host = os.environ.get("MARKET_API_HOST", "0.0.0.0")
    port = int(os.environ.get("MARKET_API_PORT", "8000"))

    logger.info(f"Starting API on {host}:{port}")
    # loop="auto" picks uvloop when it is installed
    uvicorn.run(
        "api:app",
        host=host,
        port=port,
        loop="auto",
        log_level="info"
    )

if __name__ == "__main__":
    main()
