"""
MangaPlus Backend — Process Entry Point
=========================================

Runs the API with uvicorn on HOST:PORT from the settings:

    python -m mangaplus
    mangaplus                # console script installed by pyproject.toml
"""

import uvicorn

from mangaplus.config import settings


def main() -> None:
    uvicorn.run(
        "mangaplus.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
