"""Run the development server: ``python -m expense_api``."""

import uvicorn

from expense_api.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "expense_api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,  # create_app installs the JSON logging handler
    )


if __name__ == "__main__":
    main()
