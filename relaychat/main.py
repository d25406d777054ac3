"""Main application entry point.

Runs the FastAPI relay with the NiceGUI chat page mounted on the same server.
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Serve the relay API and the chat UI from one uvicorn process."""
    import uvicorn
    from nicegui import ui

    from relaychat.api.app import create_app
    from relaychat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="DeathChat",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "relaychat-secret"),
    )

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting integrated server on http://localhost:{port}")
    logger.info(f"Relay endpoint at http://localhost:{port}/api/chat")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the relay and the UI as two processes (API on 8000, UI on 8080)."""
    relay_proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "relaychat.api.app:app",
            "--host",
            os.getenv("HOST", "0.0.0.0"),
            "--port",
            os.getenv("PORT", "8000"),
        ]
    )
    ui_proc = subprocess.Popen([sys.executable, "-m", "relaychat.ui.chat_page"])

    try:
        ui_proc.wait()
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in (relay_proc, ui_proc):
            proc.terminate()
            proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the relay and the UI on different ports.
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting RelayChat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
