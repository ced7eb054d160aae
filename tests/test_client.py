"""Tests for the signed HTTP client."""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from urllib.parse import parse_qs

import pytest
import requests

from aws_autoscaling.api.client import AutoScalingClient
from aws_autoscaling.api.credentials import Credentials
from aws_autoscaling.api.exceptions import (
    AutoScalingError,
    IdentifierTaken,
    ResourceInUse,
    ValidationError,
)
from aws_autoscaling.config.models import ConnectionConfig
from aws_autoscaling.core.exceptions import ConfigurationError


DESCRIBE_GROUPS_RESPONSE = b"""<DescribeAutoScalingGroupsResponse xmlns="http://autoscaling.amazonaws.com/doc/2011-01-01/">
  <DescribeAutoScalingGroupsResult>
    <AutoScalingGroups>
      <member>
        <AutoScalingGroupName>web</AutoScalingGroupName>
        <MinSize>1</MinSize>
        <MaxSize>4</MaxSize>
      </member>
    </AutoScalingGroups>
  </DescribeAutoScalingGroupsResult>
  <ResponseMetadata>
    <RequestId>req-1</RequestId>
  </ResponseMetadata>
</DescribeAutoScalingGroupsResponse>
"""

EMPTY_RESPONSE = b"""<CreateAutoScalingGroupResponse xmlns="http://autoscaling.amazonaws.com/doc/2011-01-01/">
  <ResponseMetadata><RequestId>req-2</RequestId></ResponseMetadata>
</CreateAutoScalingGroupResponse>
"""


def error_body(code: str, message: str) -> str:
    return (
        "<ErrorResponse><Error><Type>Sender</Type>"
        f"<Code>{code}</Code><Message>{message}</Message>"
        "</Error><RequestId>req-err</RequestId></ErrorResponse>"
    )


def make_response(status_code: int = 200, content: bytes = EMPTY_RESPONSE) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.text = content.decode("utf-8")
    return response


def make_client(session=None, **options) -> AutoScalingClient:
    config = ConnectionConfig(
        aws_access_key_id=options.pop("aws_access_key_id", "AKIDEXAMPLE"),
        aws_secret_access_key=options.pop("aws_secret_access_key", "secret"),
        **options,
    )
    return AutoScalingClient(config, session=session or MagicMock())


def posted_params(session: MagicMock) -> dict:
    """Decode the form body of the last POST."""
    body = session.post.call_args.kwargs["data"]
    return {key: values[0] for key, values in parse_qs(body).items()}


class RecordingInstrumentor:
    """Instrumentor that records the events it wraps."""

    def __init__(self):
        self.events = []

    @contextmanager
    def instrument(self, name, payload):
        self.events.append(("start", name, payload))
        yield
        self.events.append(("finish", name, payload))


class TestClientConstruction:
    """Test AutoScalingClient construction."""

    def test_missing_credentials_fail(self):
        """Test construction without keys raises a configuration error."""
        with pytest.raises(ConfigurationError, match="aws_secret_access_key"):
            AutoScalingClient(ConnectionConfig(aws_access_key_id="AKIDEXAMPLE"))

    def test_defaults(self):
        """Test default endpoint settings."""
        client = make_client()
        assert client.config.host == "autoscaling.us-east-1.amazonaws.com"
        assert client.config.endpoint == "https://autoscaling.us-east-1.amazonaws.com:443/"
        assert client.instrumentor_name == "aws_autoscaling.auto_scaling"

    def test_region_sets_host(self):
        """Test the region selects the regional endpoint."""
        client = make_client(region="eu-west-1")
        assert client.config.host == "autoscaling.eu-west-1.amazonaws.com"

    def test_iam_profile_fetches_credentials(self):
        """Test IAM-profile clients fetch credentials at construction."""
        fetcher = MagicMock()
        fetcher.fetch.return_value = Credentials(
            aws_access_key_id="ASIAROLE",
            aws_secret_access_key="role-secret",
            aws_session_token="role-token",
            aws_credentials_expire_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        session = MagicMock()
        session.post.return_value = make_response()

        client = AutoScalingClient(ConnectionConfig(use_iam_profile=True), session=session, fetcher=fetcher)
        client.delete_launch_configuration("old-config")

        fetcher.fetch.assert_called_once()
        params = posted_params(session)
        assert params["AWSAccessKeyId"] == "ASIAROLE"
        assert params["SecurityToken"] == "role-token"

    def test_expired_credentials_refreshed_before_signing(self):
        """Test IAM-profile credentials that expire between calls are refetched for the next request."""
        first = Credentials(
            aws_access_key_id="ASIAFIRST",
            aws_secret_access_key="first-secret",
            aws_session_token="first-token",
            aws_credentials_expire_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        second = Credentials(
            aws_access_key_id="ASIASECOND",
            aws_secret_access_key="second-secret",
            aws_session_token="second-token",
            aws_credentials_expire_at=datetime.now(timezone.utc) + timedelta(hours=2),
        )
        fetcher = MagicMock()
        fetcher.fetch.side_effect = [first, second]
        session = MagicMock()
        session.post.return_value = make_response()

        client = AutoScalingClient(ConnectionConfig(use_iam_profile=True), session=session, fetcher=fetcher)
        client.delete_launch_configuration("old-config")
        assert posted_params(session)["AWSAccessKeyId"] == "ASIAFIRST"

        first.aws_credentials_expire_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        client.delete_launch_configuration("older-config")

        assert fetcher.fetch.call_count == 2
        params = posted_params(session)
        assert params["AWSAccessKeyId"] == "ASIASECOND"
        assert params["SecurityToken"] == "second-token"


class TestRequests:
    """Test request construction and response handling."""

    def test_post_shape(self):
        """Test the request is a form POST to the configured endpoint."""
        session = MagicMock()
        session.post.return_value = make_response(content=DESCRIBE_GROUPS_RESPONSE)
        client = make_client(session=session)

        client.describe_auto_scaling_groups({"AutoScalingGroupNames": ["web", "worker"]})

        args, kwargs = session.post.call_args
        assert args[0] == "https://autoscaling.us-east-1.amazonaws.com:443/"
        assert kwargs["headers"] == {"Content-Type": "application/x-www-form-urlencoded"}
        params = posted_params(session)
        assert params["Action"] == "DescribeAutoScalingGroups"
        assert params["AutoScalingGroupNames.member.1"] == "web"
        assert params["AutoScalingGroupNames.member.2"] == "worker"
        assert params["Version"] == "2011-01-01"
        assert "Signature" in params

    def test_response_parsed(self):
        """Test the XML response is returned as a mapping."""
        session = MagicMock()
        session.post.return_value = make_response(content=DESCRIBE_GROUPS_RESPONSE)
        client = make_client(session=session)

        response = client.describe_auto_scaling_groups()

        groups = response["DescribeAutoScalingGroupsResult"]["AutoScalingGroups"]
        assert groups == [{"AutoScalingGroupName": "web", "MinSize": 1, "MaxSize": 4}]
        assert response["ResponseMetadata"]["RequestId"] == "req-1"

    def test_create_group_parameters(self):
        """Test required and optional parameters are flattened."""
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session)

        response = client.create_auto_scaling_group(
            "web", ["us-east-1a"], "web-config", 4, 1,
            {"DesiredCapacity": 2, "Tags": {"env": "prod"}, "LoadBalancerNames": ["lb"]},
        )

        params = posted_params(session)
        assert params["AutoScalingGroupName"] == "web"
        assert params["AvailabilityZones.member.1"] == "us-east-1a"
        assert params["MaxSize"] == "4"
        assert params["MinSize"] == "1"
        assert params["DesiredCapacity"] == "2"
        assert params["Tags.member.1.Key"] == "env"
        assert params["Tags.member.1.Value"] == "prod"
        assert params["LoadBalancerNames.member.1"] == "lb"
        assert response == {"ResponseMetadata": {"RequestId": "req-2"}}

    def test_user_data_base64_encoded(self):
        """Test launch configuration user data is base64 encoded."""
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session)

        client.create_launch_configuration("ami-1", "m1.small", "web-config", {"UserData": "#!/bin/sh"})

        assert posted_params(session)["UserData"] == "IyEvYmluL3No"

    def test_raw_request_without_parser(self):
        """Test request returns the raw body when no parser is given."""
        session = MagicMock()
        session.post.return_value = make_response(content=b"<Raw/>")
        client = make_client(session=session)

        assert client.request({"Action": "DescribeAdjustmentTypes"}) == b"<Raw/>"

    def test_non_persistent_closes_session(self):
        """Test connections are dropped after each request by default."""
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session)

        client.delete_policy("web", "scale-up")

        session.close.assert_called_once()

    def test_persistent_keeps_session(self):
        """Test persistent clients keep connections open."""
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session, persistent=True)

        client.delete_policy("web", "scale-up")

        session.close.assert_not_called()
        client.reload()
        session.close.assert_called_once()

    def test_connection_options_passed_through(self):
        """Test transport options reach the session."""
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session, connection_options={"timeout": 5})

        client.delete_launch_configuration("old")

        assert session.post.call_args.kwargs["timeout"] == 5

    def test_redirects_not_followed(self):
        """Test redirects are never followed, even when transport options ask for them."""
        session = MagicMock()
        session.post.return_value = make_response(status_code=302, content=b"")
        client = make_client(session=session, connection_options={"allow_redirects": True})

        with pytest.raises(requests.HTTPError, match=r"Expected\(200\) <=> Actual\(302\)"):
            client.delete_launch_configuration("old")

        assert session.post.call_args.kwargs["allow_redirects"] is False


class TestErrorTranslation:
    """Test error responses are mapped to exceptions."""

    @pytest.mark.parametrize("code, exception_type", [
        ("AlreadyExists", IdentifierTaken),
        ("ResourceInUse", ResourceInUse),
        ("ValidationError", ValidationError),
    ])
    def test_known_codes(self, code, exception_type):
        """Test known codes raise their exception with the message verbatim."""
        session = MagicMock()
        session.post.return_value = make_response(400, error_body(code, "Something went wrong").encode())
        client = make_client(session=session)

        with pytest.raises(exception_type) as exc_info:
            client.delete_auto_scaling_group("web")

        assert str(exc_info.value) == "Something went wrong"
        assert isinstance(exc_info.value.__cause__, requests.HTTPError)

    def test_other_code(self):
        """Test other codes raise AutoScalingError with code and message."""
        session = MagicMock()
        session.post.return_value = make_response(400, error_body("Throttling", "Rate exceeded").encode())
        client = make_client(session=session)

        with pytest.raises(AutoScalingError) as exc_info:
            client.describe_adjustment_types()

        assert type(exc_info.value) is AutoScalingError
        assert str(exc_info.value) == "Throttling => Rate exceeded"

    def test_malformed_body_raises_transport_error(self):
        """Test bodies without a code raise the HTTP error unchanged."""
        session = MagicMock()
        session.post.return_value = make_response(503, b"Service Unavailable")
        client = make_client(session=session)

        with pytest.raises(requests.HTTPError) as exc_info:
            client.describe_adjustment_types()

        assert exc_info.value.response.status_code == 503

    def test_connection_errors_propagate(self):
        """Test transport failures are not wrapped."""
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        client = make_client(session=session)

        with pytest.raises(requests.ConnectionError):
            client.describe_adjustment_types()


class TestInstrumentation:
    """Test the instrumentor hook."""

    def test_request_wrapped_in_event(self):
        """Test each request is wrapped in a named event with its parameters."""
        instrumentor = RecordingInstrumentor()
        session = MagicMock()
        session.post.return_value = make_response()
        client = make_client(session=session, instrumentor=instrumentor, instrumentor_name="test.as")

        client.delete_launch_configuration("old")

        assert [event[:2] for event in instrumentor.events] == [
            ("start", "test.as.request"),
            ("finish", "test.as.request"),
        ]
        payload = instrumentor.events[0][2]
        assert payload["Action"] == "DeleteLaunchConfiguration"
        assert payload["LaunchConfigurationName"] == "old"
        assert payload["idempotent"] is False

    def test_errors_pass_through_instrumentor(self):
        """Test translated errors still reach the caller."""
        instrumentor = RecordingInstrumentor()
        session = MagicMock()
        session.post.return_value = make_response(400, error_body("ResourceInUse", "busy").encode())
        client = make_client(session=session, instrumentor=instrumentor)

        with pytest.raises(ResourceInUse):
            client.delete_launch_configuration("old")

        assert instrumentor.events[0][1] == "aws_autoscaling.auto_scaling.request"


if __name__ == '__main__':
    pytest.main([__file__])
