"""Application entry point for StudentQuiz."""

from __future__ import annotations

import socket

from student_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from student_quiz.constants.storage_constants import DEFAULT_DATA_FILE
from student_quiz.core.quiz_manager import QuizManager
from student_quiz.core.storage import JsonFileStore
from student_quiz.server.api_server import start_api_server
from student_quiz.utils.logging_config import configure_logging


def _determine_public_url(port: int) -> str:
    """Best-effort determination of the local IP for shareable links."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging, open the data file and serve the API until interrupted."""
    logger = configure_logging()
    logger.info("Starting StudentQuiz…")

    store = JsonFileStore(DEFAULT_DATA_FILE)
    logger.info("Using data file %s", store.file_path)
    quiz_manager = QuizManager(store)

    public_url = _determine_public_url(DEFAULT_PORT)
    server_thread = start_api_server(
        quiz_manager=quiz_manager,
        host=DEFAULT_HOST,
        port=DEFAULT_PORT,
        public_base_url=public_url,
    )
    logger.info("Shared quiz links will point at %s", public_url)
    try:
        server_thread.join()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        quiz_manager.shutdown()


if __name__ == "__main__":
    main()
