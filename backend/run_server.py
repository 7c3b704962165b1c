"""Simple server runner that keeps uvicorn alive."""
import logging
import signal
import sys

import uvicorn

logger = logging.getLogger("ledger_api.run_server")


def handle_signal(sig, frame):
    logger.info(f"Received signal {sig}, shutting down gracefully...")
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    uvicorn.run(
        "ledger_api.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
