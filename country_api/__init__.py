"""Country records service: JSON API and HTML views over a flat JSON file."""
from country_api.app import create_app

__all__ = ["create_app"]
