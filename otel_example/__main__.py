import uvicorn

from otel_example.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "otel_example.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
