"""
Base API client with common functionality
"""

import asyncio
from abc import ABC
from typing import Optional, Dict, Any
import httpx
from tracker.utils.logger import logger
from tracker.utils.error_handler import APIError
from tracker.config.constants import MAX_READ_RETRIES, RETRY_DELAY


def _error_message(response: httpx.Response) -> str:
    """Extract the remote error message from an OData error body"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"


class BaseAPIClient(ABC):
    """Base class for API clients with common functionality"""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base API client

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests plug a MockTransport here)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logger

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        retries: int = 1,
    ) -> Any:
        """
        Make HTTP request

        Only transport errors are retried, and only up to `retries` attempts.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint, or an absolute URL
            headers: Request headers
            params: Query parameters
            json_data: JSON body
            retries: Number of attempts

        Returns:
            Parsed JSON body, or {} for empty responses

        Raises:
            APIError: If the request fails
        """
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            url = endpoint
        else:
            url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(retries):
            try:
                self.logger.debug(f"Request: {method} {url} (attempt {attempt + 1}/{retries})")

                request_kwargs = {
                    "method": method,
                    "url": url,
                    "headers": headers,
                    "params": params,
                }

                if json_data is not None:
                    request_kwargs["json"] = json_data
                    self.logger.debug(f"Request JSON data: {json_data}")

                response = await self.client.request(**request_kwargs)
                self.logger.debug(f"Response status: {response.status_code}")

            except httpx.RequestError as e:
                if attempt < retries - 1:
                    self.logger.warning(
                        f"Request error: {e}, retrying in {RETRY_DELAY} seconds..."
                    )
                    await asyncio.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                self.logger.error(f"Request error after {attempt + 1} attempts: {e}")
                raise APIError(f"Request to {url} failed: {e}") from e

            if response.status_code >= 400:
                message = _error_message(response)
                self.logger.warning(f"Error response {response.status_code}: {response.text[:1000]}")
                raise APIError(message, error_code=str(response.status_code))

            # Handle empty response (204 No Content or empty body)
            if response.status_code == 204 or not response.text.strip():
                return {}

            try:
                return response.json()
            except ValueError as e:
                raise APIError(f"Invalid JSON in response from {url}") from e

        raise APIError(f"Request to {url} was not attempted")

    async def get(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make GET request (retried on transport errors)"""
        return await self._request("GET", endpoint, headers=headers, params=params, retries=MAX_READ_RETRIES)

    async def post(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make POST request"""
        return await self._request("POST", endpoint, headers=headers, json_data=json_data)

    async def patch(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make PATCH request"""
        return await self._request("PATCH", endpoint, headers=headers, json_data=json_data)

    async def delete(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make DELETE request"""
        return await self._request("DELETE", endpoint, headers=headers)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
