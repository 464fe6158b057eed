from .api_client import AdminApiClient

__all__ = ["AdminApiClient"]
