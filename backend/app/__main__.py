import uvicorn

from app.core.config import settings


def main() -> None:
    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
