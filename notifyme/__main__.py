"""
Run the relay:

    python -m notifyme
"""
import uvicorn

from notifyme.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "notifyme.main:app",
        host=settings.LISTEN_ADDR,
        port=settings.LISTEN_PORT,
    )


if __name__ == "__main__":
    main()
