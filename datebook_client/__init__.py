"""
Python client for the Datebook API.

ApiClient handles transport and the response envelope; the functions in
datebook_client.resources map one-to-one onto REST endpoints.
"""

from .http import ApiClient, ApiError
from .resources import UNSET

__all__ = ["ApiClient", "ApiError", "UNSET"]
