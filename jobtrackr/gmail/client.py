"""Gmail API client."""
import asyncio
import logging
import threading
from typing import Optional, Protocol, runtime_checkable

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from jobtrackr.exceptions import AuthenticationRequired, MailboxFetchError, MailboxSearchError
from jobtrackr.gmail.auth import GmailAuth

logger = logging.getLogger(__name__)

# Gmail caps messages.list page size at 500
MAX_PAGE_SIZE = 500


@runtime_checkable
class Mailbox(Protocol):
    """Mailbox capability the sync pipeline depends on."""

    def ensure_authenticated(self) -> None:
        """Raise AuthenticationRequired if no valid credential is available."""
        ...

    async def search(self, query: str, max_results: int) -> list[str]:
        """Return ids of messages matching a Gmail search query."""
        ...

    async def fetch_full(self, message_id: str) -> dict:
        """Return the full message resource (headers and MIME parts)."""
        ...


class GmailClient:
    """Gmail API client implementing the Mailbox protocol."""

    def __init__(self, auth: GmailAuth, user_id: str = "me"):
        """
        Initialize Gmail client.

        Args:
            auth: GmailAuth instance for authentication
            user_id: Gmail user id, "me" for the token owner
        """
        self.auth = auth
        self.user_id = user_id
        # httplib2 is not thread-safe, so each worker thread gets its own service
        self._local = threading.local()

    def _get_service(self):
        """Get or create the Gmail API service for the current thread."""
        service = getattr(self._local, "service", None)
        if service is None:
            credentials = self.auth.require_credentials()
            service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
            self._local.service = service
        return service

    def ensure_authenticated(self) -> None:
        self.auth.require_credentials()

    def search_messages(self, query: str, max_results: int = 500) -> list[str]:
        """
        Search for messages matching query.

        Args:
            query: Gmail search query (same syntax as Gmail search)
            max_results: Maximum number of message IDs to return

        Returns:
            List of message IDs

        Raises:
            AuthenticationRequired: If Gmail rejects the credential
            MailboxSearchError: On any other API or network error
        """
        service = self._get_service()

        message_ids: list[str] = []
        page_token: Optional[str] = None

        while len(message_ids) < max_results:
            try:
                result = (
                    service.users()
                    .messages()
                    .list(
                        userId=self.user_id,
                        q=query,
                        maxResults=min(MAX_PAGE_SIZE, max_results - len(message_ids)),
                        pageToken=page_token,
                    )
                    .execute()
                )
            except HttpError as e:
                if e.resp.status == 401:
                    raise AuthenticationRequired("Gmail rejected the access token") from e
                raise MailboxSearchError(f"Gmail search failed: {e}") from e
            except (OSError, httplib2.HttpLib2Error) as e:
                raise MailboxSearchError(f"Gmail search failed: {e}") from e

            messages = result.get("messages", [])
            message_ids.extend(msg["id"] for msg in messages)

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        return message_ids[:max_results]

    def get_message(self, message_id: str) -> dict:
        """
        Get the full message resource.

        Args:
            message_id: Gmail message ID

        Returns:
            Raw message dict (``format=full``)

        Raises:
            MailboxFetchError: If the message cannot be retrieved
        """
        service = self._get_service()

        try:
            return (
                service.users()
                .messages()
                .get(userId=self.user_id, id=message_id, format="full")
                .execute()
            )
        except (HttpError, OSError, httplib2.HttpLib2Error) as e:
            raise MailboxFetchError(message_id, str(e)) from e

    async def search(self, query: str, max_results: int) -> list[str]:
        return await asyncio.to_thread(self.search_messages, query, max_results)

    async def fetch_full(self, message_id: str) -> dict:
        return await asyncio.to_thread(self.get_message, message_id)
