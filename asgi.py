"""
asgi.py -- ASGI entry point for TicketDesk.

Run with:  uvicorn asgi:app --reload
           python asgi.py
"""

import uvicorn

from api.main import app
from core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("asgi:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
