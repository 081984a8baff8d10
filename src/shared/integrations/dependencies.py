"""Dependencies exposing the application's integration config cache."""

from fastapi import Request

from src.shared.integrations.config import IntegrationConfigCache


def get_integration_cache(request: Request) -> IntegrationConfigCache:
    """Return the cache owned by the running application."""
    return request.app.state.integration_cache
