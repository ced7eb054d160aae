"""Signed HTTP client for the AutoScaling Query API."""

import logging
from typing import Any, Callable, Dict, Optional

import requests

from ..config.models import API_VERSION, ConnectionConfig
from ..logging.setup import log_with_context
from .credentials import CredentialProvider, Credentials, InstanceMetadataFetcher
from .errors import translate_error
from .operations import AutoScalingService, Operation
from .parsers import response_parser
from .signing import signed_params


logger = logging.getLogger(__name__)

Parser = Callable[[bytes], Any]


class AutoScalingClient(AutoScalingService):
    """Talks to the real AutoScaling endpoint.

    Example:
        client = AutoScalingClient(ConnectionConfig(
            aws_access_key_id="AKIA...",
            aws_secret_access_key="...",
            region="us-west-2",
        ))
        groups = client.describe_auto_scaling_groups()
    """

    def __init__(
        self,
        config: ConnectionConfig,
        session: Optional[requests.Session] = None,
        fetcher: Optional[InstanceMetadataFetcher] = None,
    ) -> None:
        """Initialize client.

        Args:
            config: Connection configuration.
            session: HTTP session to use instead of creating one.
            fetcher: Instance metadata fetcher used with ``use_iam_profile``.

        Raises:
            ConfigurationError: If credentials are missing.
            CredentialsError: If IAM-profile credentials cannot be fetched.
        """
        self.config = config
        self.credentials = CredentialProvider(
            Credentials.from_config(config),
            use_iam_profile=config.use_iam_profile,
            fetcher=fetcher,
        )
        if config.use_iam_profile:
            self.credentials.refresh_if_expired()
        else:
            config.require_credentials()

        self.instrumentor = config.instrumentor
        self.instrumentor_name = config.instrumentor_name
        self._session = session
        self._owns_session = session is None

    def __enter__(self) -> 'AutoScalingClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def close(self) -> None:
        """Close the HTTP session, if this client created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
        logger.debug("AutoScaling connection closed")

    def reload(self) -> None:
        """Drop any pooled connections."""
        if self._session is not None:
            self._session.close()
            if self._owns_session:
                self._session = None

    def _call(self, operation: Operation, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            operation.serialize(params),
            idempotent=operation.idempotent,
            parser=response_parser(operation.result_key),
        )

    def request(
        self,
        params: Dict[str, Any],
        idempotent: bool = False,
        parser: Optional[Parser] = None,
    ) -> Any:
        """Sign and send one request.

        Args:
            params: Flat wire parameters, including ``Action``.
            idempotent: Whether the request is safe to repeat. Passed to the
                instrumentor; no retries are made here.
            parser: Converts the response body; the raw body is returned
                when omitted.

        Returns:
            Parsed response.

        Raises:
            IdentifierTaken: For ``AlreadyExists`` errors.
            ResourceInUse: For ``ResourceInUse`` errors.
            ValidationError: For ``ValidationError`` errors.
            AutoScalingError: For any other error code.
            requests.HTTPError: For error bodies without a code.
        """
        self.credentials.refresh_if_expired()
        credentials = self.credentials.credentials

        body = signed_params(
            params,
            aws_access_key_id=credentials.aws_access_key_id,
            aws_secret_access_key=credentials.aws_secret_access_key,
            aws_session_token=credentials.aws_session_token,
            host=self.config.host,
            path=self.config.path,
            port=self.config.port,
            version=API_VERSION,
        )

        if self.instrumentor is not None:
            metadata = dict(params, idempotent=idempotent)
            with self.instrumentor.instrument(f"{self.instrumentor_name}.request", metadata):
                return self._request(params.get("Action"), body, parser)
        return self._request(params.get("Action"), body, parser)

    def _request(self, action: Optional[str], body: str, parser: Optional[Parser]) -> Any:
        endpoint = self.config.endpoint
        log_with_context(logger, logging.DEBUG, f"POST {action} to {endpoint}", action=action, endpoint=endpoint)

        try:
            # Only a 200 from the endpoint itself counts as success
            response = self.session.post(
                endpoint,
                data=body,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                **dict(self.config.connection_options, allow_redirects=False),
            )
        finally:
            if not self.config.persistent:
                self.reload()

        if response.status_code != 200:
            error = requests.HTTPError(
                f"Expected(200) <=> Actual({response.status_code})\n{response.text}",
                response=response,
            )
            translated = translate_error(error, response.text, status_code=response.status_code)
            if translated is None:
                raise error
            logger.warning(f"{action} failed: {translated}")
            raise translated from error

        if parser is None:
            return response.content
        return parser(response.content)
