import argparse
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from talkwatch.api.router import create_api_router
from talkwatch.config import settings
from talkwatch.events import InMemoryEventSink
from talkwatch.identity import UserDirectory
from talkwatch.notifier import DiscussionNotifier
from talkwatch.storage import InMemoryRevisionStore


def configure_logging(debug: bool) -> None:
    """Configure root logging, verbose in debug mode."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app() -> FastAPI:
    """Create the application with in-memory backends."""
    app = FastAPI(title="Talk Page Notifications", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify exact origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = InMemoryRevisionStore()
    directory = UserDirectory()
    sink = InMemoryEventSink()
    notifier = DiscussionNotifier(store=store, identity=directory, sink=sink)

    app.include_router(create_api_router(notifier, store, directory, sink))
    return app


app = create_app()


def main() -> None:
    """Entry point for the talkwatch-server command."""
    parser = argparse.ArgumentParser(description="Talk page notification server")
    parser.add_argument("--port", type=int, help="Port to run the server on (default: 8000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    configure_logging(args.debug or settings.debug)

    port = args.port or settings.port or 8000
    logging.getLogger(__name__).info("Server available at: http://%s:%d", settings.host, port)
    uvicorn.run(app, host=settings.host, port=port)


if __name__ == "__main__":
    main()
