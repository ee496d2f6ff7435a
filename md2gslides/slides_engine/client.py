"""Presentation API client interface and the Google Slides adapter."""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class PresentationClient(Protocol):
    """The two presentation calls the engine needs."""

    def get(self, presentation_id: str) -> dict[str, Any]:
        """Return the full presentation resource."""
        ...

    def batch_update(self, presentation_id: str, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Apply requests atomically and return one reply per request."""
        ...


class GoogleSlidesClient:
    """PresentationClient over a ``googleapiclient`` Slides v1 service.

    Build the service with
    ``googleapiclient.discovery.build("slides", "v1", credentials=creds)``.
    """

    def __init__(self, service):
        self.service = service

    @classmethod
    def from_service_account(cls, key_file: str, scopes: list[str] | None = None) -> "GoogleSlidesClient":
        """Create a client authenticated with a service-account key file."""
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        scopes = scopes or ["https://www.googleapis.com/auth/presentations"]
        creds = service_account.Credentials.from_service_account_file(key_file, scopes=scopes)
        return cls(build("slides", "v1", credentials=creds, cache_discovery=False))

    def get(self, presentation_id: str) -> dict[str, Any]:
        return self.service.presentations().get(presentationId=presentation_id).execute()

    def batch_update(self, presentation_id: str, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        logger.debug(f"batchUpdate {presentation_id}: {len(requests)} requests")
        response = (
            self.service.presentations()
            .batchUpdate(presentationId=presentation_id, body={"requests": requests})
            .execute()
        )
        return response.get("replies", [])

    def create(self, title: str) -> str:
        """Create an empty presentation and return its id."""
        response = self.service.presentations().create(body={"title": title}).execute()
        return response["presentationId"]
