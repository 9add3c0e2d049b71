"""
HubSpot Viewer Bridge.

Connects HubSpot CRM file attachments to the Nutrient Web SDK viewer, using
short-lived viewer tokens to authorize file access and uploads.
"""

__version__ = "1.0.0"
