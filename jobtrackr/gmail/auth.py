"""Gmail OAuth2 authentication."""
import logging
from pathlib import Path
from typing import Optional

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from jobtrackr.exceptions import AuthenticationRequired

logger = logging.getLogger(__name__)

# Gmail API scopes
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

REVOKE_URL = "https://oauth2.googleapis.com/revoke"


class GmailAuth:
    """Handle Gmail OAuth2 authentication."""

    def __init__(
        self,
        credentials_file: str = "credentials.json",
        token_file: str = "token.json",
        interactive: bool = False,
    ):
        """
        Initialize Gmail authentication.

        Args:
            credentials_file: Path to OAuth client secrets JSON file
            token_file: Path to store/load OAuth token
            interactive: Whether a browser consent flow may be started when no
                usable token exists. Background syncs leave this off.
        """
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)
        self.interactive = interactive
        self._credentials: Optional[Credentials] = None

    def get_credentials(self) -> Optional[Credentials]:
        """
        Get valid credentials, refreshing or prompting for auth if allowed.

        Returns:
            Valid Credentials object or None if authentication fails
        """
        if self._credentials and self._credentials.valid:
            return self._credentials

        if self.token_file.exists():
            self._credentials = Credentials.from_authorized_user_file(
                str(self.token_file),
                SCOPES,
            )

        if not self._credentials or not self._credentials.valid:
            if self._credentials and self._credentials.expired and self._credentials.refresh_token:
                try:
                    self._credentials.refresh(Request())
                except RefreshError as e:
                    logger.warning("Gmail token refresh failed: %s", e)
                    self._credentials = None
            elif self.interactive:
                self._credentials = self._run_oauth_flow()
            else:
                self._credentials = None

        if self._credentials:
            self._save_token()

        return self._credentials

    def require_credentials(self) -> Credentials:
        """
        Return valid credentials or fail.

        Raises:
            AuthenticationRequired: If no valid credential can be obtained
        """
        credentials = self.get_credentials()
        if credentials is None or not credentials.valid:
            raise AuthenticationRequired(
                f"No valid Gmail token at {self.token_file}. Run scripts/setup_gmail.py first."
            )
        return credentials

    def _run_oauth_flow(self) -> Optional[Credentials]:
        """Run the installed-app OAuth2 flow to get new credentials."""
        if not self.credentials_file.exists():
            logger.error("Credentials file not found: %s", self.credentials_file)
            return None

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_file),
                SCOPES,
            )
            return flow.run_local_server(port=0)
        except Exception as e:
            logger.error("OAuth flow failed: %s", e)
            return None

    def _save_token(self) -> None:
        """Save credentials to token file."""
        if self._credentials:
            with open(self.token_file, "w") as f:
                f.write(self._credentials.to_json())

    def is_authenticated(self) -> bool:
        """Check if valid credentials exist."""
        creds = self.get_credentials()
        return creds is not None and creds.valid

    def revoke(self) -> bool:
        """Revoke credentials and delete the token file (disconnect Gmail)."""
        if not self.token_file.exists():
            return True

        try:
            if self._credentials is None:
                self._credentials = Credentials.from_authorized_user_file(
                    str(self.token_file),
                    SCOPES,
                )
            requests.post(
                REVOKE_URL,
                params={"token": self._credentials.token},
                headers={"content-type": "application/x-www-form-urlencoded"},
                timeout=10,
            )
        except (requests.RequestException, ValueError) as e:
            logger.warning("Token revoke failed: %s", e)
            return False

        self.token_file.unlink()
        self._credentials = None
        logger.info("Gmail disconnected, removed %s", self.token_file)
        return True
