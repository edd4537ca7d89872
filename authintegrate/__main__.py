# =======================================================================================
# authintegrate/__main__.py - `python -m authintegrate`
# =======================================================================================
import uvicorn

from .config import config


def main():
    uvicorn.run(
        "authintegrate.main:create_app",
        factory=True,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level="debug" if config.API_DEBUG else "info",
    )


if __name__ == "__main__":
    main()
