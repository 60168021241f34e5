"""Run the lab portal API with uvicorn."""

import uvicorn

from labportal.core.config import settings


def main() -> None:
    uvicorn.run(
        "labportal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
