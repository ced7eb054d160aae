"""Credentials, including refresh from the EC2 instance metadata service."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import requests

from ..config.models import ConnectionConfig, parse_timestamp
from ..core.exceptions import ConfigurationError, CredentialsError


logger = logging.getLogger(__name__)

METADATA_BASE_URL = "http://169.254.169.254/latest/meta-data/"
CREDENTIALS_PATH = "iam/security-credentials/"

# Refresh slightly before the advertised expiry
EXPIRY_MARGIN = timedelta(seconds=15)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Credentials:
    """Key material used to sign requests."""

    aws_access_key_id: Optional[str]
    aws_secret_access_key: Optional[str]
    aws_session_token: Optional[str] = None
    aws_credentials_expire_at: Optional[datetime] = None

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "Credentials":
        return cls(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            aws_session_token=config.aws_session_token,
            aws_credentials_expire_at=config.aws_credentials_expire_at,
        )

    def expired(self, now: Optional[datetime] = None) -> bool:
        """True when an expiry is known and has (nearly) passed."""
        if self.aws_credentials_expire_at is None:
            return False
        now = now or utcnow()
        return now >= self.aws_credentials_expire_at - EXPIRY_MARGIN

    @property
    def complete(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


class InstanceMetadataFetcher:
    """Fetches temporary role credentials from the instance metadata service."""

    def __init__(
        self,
        base_url: str = METADATA_BASE_URL,
        timeout: float = 1.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str) -> requests.Response:
        response = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
        response.raise_for_status()
        return response

    def fetch(self) -> Credentials:
        """Fetch credentials for the first role attached to the instance.

        Returns:
            Fresh credentials with their expiry.

        Raises:
            CredentialsError: If the metadata service is unreachable or
                returns something unexpected.
        """
        try:
            role_name = self._get(CREDENTIALS_PATH).text.strip().splitlines()[0]
            document: Dict[str, Any] = self._get(f"{CREDENTIALS_PATH}{role_name}").json()
            credentials = Credentials(
                aws_access_key_id=document["AccessKeyId"],
                aws_secret_access_key=document["SecretAccessKey"],
                aws_session_token=document.get("Token"),
                aws_credentials_expire_at=parse_timestamp(document.get("Expiration")),
            )
        except (requests.RequestException, ConfigurationError, ValueError, KeyError, IndexError) as e:
            logger.error(f"Unable to fetch credentials from instance metadata: {e}")
            raise CredentialsError(f"Unable to fetch credentials: {e}")

        logger.info(f"Fetched credentials for role {role_name}")
        return credentials


class CredentialProvider:
    """Holds the current credentials and refreshes them when they expire.

    Only IAM-profile credentials are refreshed; static credentials with an
    expiry are used as given.
    """

    def __init__(
        self,
        credentials: Credentials,
        use_iam_profile: bool = False,
        fetcher: Optional[InstanceMetadataFetcher] = None,
    ) -> None:
        self.credentials = credentials
        self.use_iam_profile = use_iam_profile
        self.fetcher = fetcher or InstanceMetadataFetcher()

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        if not self.use_iam_profile:
            return False
        return not self.credentials.complete or self.credentials.expired(now)

    def refresh_if_expired(self, now: Optional[datetime] = None) -> bool:
        """Refresh credentials if they are missing or expired.

        Returns:
            True if new credentials were fetched.
        """
        if not self.needs_refresh(now):
            return False
        logger.info("Refreshing expired credentials from instance metadata")
        self.credentials = self.fetcher.fetch()
        return True
