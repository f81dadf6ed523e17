"""
Image deletes through the running API (httpx).

The drafts CLI has no object-store credentials of its own, so it asks the
API to delete on behalf of the session that uploaded the image.
"""

from __future__ import annotations

import httpx

from inkpost.adapters.s3_store import ImageStoreError


class ApiImageDeleter:
    def __init__(self, api: str, token: str, *, timeout: float = 30.0):
        self.url = f"{api.rstrip('/')}/api/s3/delete"
        self.token = token
        self.timeout = timeout

    def delete(self, key: str) -> None:
        try:
            response = httpx.request(
                "DELETE",
                self.url,
                json={"key": key},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ImageStoreError(f"Delete request failed: {e}") from e

        if response.status_code >= 400:
            raise ImageStoreError(f"Delete rejected ({response.status_code}): {response.text}")
        if key in response.json().get("failed", []):
            raise ImageStoreError(f"The image store could not delete {key}")
