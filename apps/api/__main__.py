import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("apps.api.main:app", host="0.0.0.0", port=settings.port)  # nosec


if __name__ == "__main__":
    main()
