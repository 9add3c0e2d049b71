"""HubSpot API client."""
from .client import HubSpotAPIError, HubSpotClient, HubSpotFile

__all__ = ["HubSpotClient", "HubSpotFile", "HubSpotAPIError"]
