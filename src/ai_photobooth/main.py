"""Command-line entrypoint that serves the kiosk controller."""

import uvicorn

from ai_photobooth.api.app import create_app
from ai_photobooth.containers import build_container


def main() -> None:
    """Build the container and run the kiosk API with uvicorn."""
    container = build_container()
    settings = container.settings
    uvicorn.run(
        create_app(container),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
