"""Run the feed server with uvicorn."""

import uvicorn

from path_gtfsrt.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("path_gtfsrt.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
