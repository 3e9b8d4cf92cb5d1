"""Run the development server: ``python -m country_api``."""
import uvicorn

from country_api.core.config import get_settings


def main() -> None:
    settings = get_settings()
    print(f"Server is running on http://{settings.host}:{settings.port}")
    uvicorn.run("country_api.app:create_app", host=settings.host, port=settings.port, factory=True)


if __name__ == "__main__":
    main()
