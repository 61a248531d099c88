"""Run the restroute application with uvicorn."""

# Third-Party
import uvicorn

# First-Party
from restroute.config import settings


def main() -> None:
    uvicorn.run("restroute.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
