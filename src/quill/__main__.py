"""Quill entrypoint.

Run with:
  python -m quill
"""

import uvicorn

from quill.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "quill.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )

if __name__ == "__main__":
    main()
