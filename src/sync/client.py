import os
from typing import Any, Optional

import httpx

SYNC_PATH = "/api/sync"


class SyncClient:
    """Client for the bardbook save/load sync endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        """Authorization header when an API key is configured."""
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _request(self, method: str, action: str, json: Optional[dict] = None) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self._transport
        ) as client:
            response = await client.request(
                method,
                SYNC_PATH,
                params={"action": action},
                headers=self._get_headers(),
                json=json,
            )
            # 400 carries an error envelope, anything else unexpected is raised
            if response.status_code != 400:
                response.raise_for_status()
            return response.json()

    async def save(self, data: dict[str, Any]) -> dict:
        """
        Push a data object to the server.

        Returns:
            Response envelope: success, message and timestamp, or error
        """
        return await self._request("POST", "save", json={"data": data})

    async def load(self) -> Optional[dict[str, Any]]:
        """Fetch the stored data object, or None when nothing was saved."""
        payload = await self._request("GET", "load")
        if not payload.get("success"):
            if "error" in payload:
                raise RuntimeError(f"Sync load failed: {payload['error']}")
            return None
        return payload["data"]

    @classmethod
    def from_env(cls) -> "SyncClient":
        """Create a SyncClient from environment variables."""
        base_url = os.environ.get("BARDBOOK_SYNC_URL")
        if not base_url:
            raise ValueError("BARDBOOK_SYNC_URL environment variable is required")
        return cls(base_url=base_url, api_key=os.environ.get("BARDBOOK_API_KEY"))
