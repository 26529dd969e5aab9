#!/usr/bin/env python3
"""Setup script for Gmail OAuth authentication.

Usage:
    python scripts/setup_gmail.py [--disconnect]
"""
import argparse
import logging
import sys
from pathlib import Path

from jobtrackr.gmail.auth import GmailAuth
from jobtrackr.logging_config import setup_logging
from jobtrackr.settings import settings

logger = logging.getLogger(__name__)


def main():
    """Run Gmail OAuth setup."""
    setup_logging(level=settings.log_level, app_level=settings.app_log_level)

    parser = argparse.ArgumentParser(description="Connect or disconnect Gmail.")
    parser.add_argument(
        "--disconnect",
        action="store_true",
        help="Revoke the stored token and delete it.",
    )
    args = parser.parse_args()

    credentials_path = Path(settings.gmail_credentials_file)
    token_path = Path(settings.gmail_token_file)

    auth = GmailAuth(
        credentials_file=str(credentials_path),
        token_file=str(token_path),
        interactive=True,
    )

    if args.disconnect:
        if auth.revoke():
            logger.info("Gmail account disconnected.")
            return 0
        logger.error("Could not revoke the Gmail token.")
        return 1

    print("Gmail OAuth Setup")
    print("=" * 50)
    print()

    if not credentials_path.exists():
        logger.error("credentials.json not found!")
        print()
        print("To set up Gmail integration:")
        print("1. Go to https://console.cloud.google.com")
        print("2. Create a new project (or use existing)")
        print("3. Enable the Gmail API")
        print("4. Go to Credentials > Create Credentials > OAuth 2.0 Client ID")
        print("5. Choose 'Desktop app' as application type")
        print("6. Download the JSON and save as 'credentials.json'")
        print("7. Place it in: %s" % credentials_path.absolute())
        return 1

    logger.info("Found credentials file: %s", credentials_path)

    if token_path.exists():
        logger.info("Existing token found. Testing...")
        if auth.is_authenticated():
            logger.info("Already authenticated! Gmail is ready to use.")
            return 0
        logger.warning("Token expired or invalid. Re-authenticating...")

    print()
    print("Starting OAuth flow...")
    print("A browser window will open for authentication.")
    print()

    if auth.get_credentials():
        logger.info("Authentication successful!")
        logger.info("Token saved to: %s", token_path)
        print()
        print("Gmail integration is now ready.")
        print("Run scripts/sync_gmail.py to import job application emails.")
        return 0

    logger.error("Authentication failed!")
    print("Please check your credentials and try again.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
