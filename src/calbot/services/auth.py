from __future__ import annotations

import logging
from typing import Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..config import GoogleSettings
from ..domain import AuthRequiredError

logger = logging.getLogger(__name__)


def load_saved_credentials(settings: GoogleSettings) -> Optional[Credentials]:
    if not settings.token_path.exists():
        return None
    try:
        credentials = Credentials.from_authorized_user_file(str(settings.token_path), list(settings.scopes))
    except (ValueError, OSError) as exc:
        logger.warning("Ignoring unreadable token file %s: %s", settings.token_path, exc)
        return None
    if credentials.expired and credentials.refresh_token:
        try:
            credentials.refresh(Request())
        except RefreshError as exc:
            logger.warning("Stored Google token could not be refreshed: %s", exc)
            return None
        save_credentials(credentials, settings)
    return credentials


def save_credentials(credentials: Credentials, settings: GoogleSettings) -> None:
    settings.token_path.parent.mkdir(parents=True, exist_ok=True)
    settings.token_path.write_text(credentials.to_json(), encoding="utf-8")
    logger.info("Saved Google token to %s", settings.token_path)


def authorize(settings: GoogleSettings) -> Credentials:
    """Return usable Google credentials, running the browser consent flow when needed."""

    credentials = load_saved_credentials(settings)
    if credentials and credentials.valid:
        return credentials

    if not settings.credentials_path.exists():
        raise AuthRequiredError(
            f"Credentials file not found at {settings.credentials_path}. "
            "Download your OAuth2 client credentials from Google Cloud Console and save them as credentials.json"
        )

    flow = InstalledAppFlow.from_client_secrets_file(str(settings.credentials_path), list(settings.scopes))
    credentials = flow.run_local_server(port=0)
    save_credentials(credentials, settings)
    return credentials


def verify_auth(credentials: Credentials) -> bool:
    if credentials.valid:
        return True
    if not credentials.refresh_token:
        return False
    try:
        credentials.refresh(Request())
    except GoogleAuthError as exc:
        logger.error("Auth verification failed: %s", exc)
        return False
    return credentials.valid
