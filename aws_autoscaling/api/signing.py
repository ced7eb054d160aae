"""AWS Signature Version 2 request signing and parameter flattening."""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import quote


TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
SIGNATURE_METHOD = "HmacSHA256"
SIGNATURE_VERSION = "2"

# quote() always keeps letters and digits; with these it keeps the RFC 3986 unreserved set
SAFE_CHARACTERS = "-_.~"


def escape(value: Any) -> str:
    """Percent-encode a value the way the signing algorithm requires."""
    return quote(str(value), safe=SAFE_CHARACTERS)


def iso8601(moment: datetime) -> str:
    """Format a datetime as a UTC timestamp accepted by the API."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def format_value(value: Any) -> str:
    """Render a parameter value as the API expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return iso8601(value)
    return str(value)


def canonical_query(params: Mapping[str, Any]) -> str:
    """Sorted, escaped ``key=value`` pairs joined by ``&``; None values dropped."""
    pairs = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        pairs.append(f"{escape(key)}={escape(format_value(value))}")
    return "&".join(pairs)


def sign(secret_access_key: str, string_to_sign: str) -> str:
    """Base64 encoded HMAC-SHA256 of ``string_to_sign``."""
    digest = hmac.new(
        secret_access_key.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def signed_params(
    params: Mapping[str, Any],
    aws_access_key_id: str,
    aws_secret_access_key: str,
    host: str,
    path: str,
    port: int,
    version: str,
    aws_session_token: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> str:
    """Build a signed, form-encoded request body.

    Args:
        params: Operation parameters, including ``Action``.
        aws_access_key_id: Access key id sent with the request.
        aws_secret_access_key: Secret used to compute the signature.
        host: Endpoint host name.
        path: Request path.
        port: Endpoint port.
        version: API version string.
        aws_session_token: Optional session token for temporary credentials.
        timestamp: Fixed request time; taken from ``clock`` when omitted.
        clock: Source of the current time.

    Returns:
        The request body, ending in ``Signature=...``.
    """
    signed = dict(params)
    signed.update({
        "AWSAccessKeyId": aws_access_key_id,
        "SignatureMethod": SIGNATURE_METHOD,
        "SignatureVersion": SIGNATURE_VERSION,
        "Timestamp": iso8601(timestamp or clock()),
        "Version": version,
    })
    if aws_session_token:
        signed["SecurityToken"] = aws_session_token

    body = canonical_query(signed)
    string_to_sign = f"POST\n{host}:{port}\n{path}\n{body}"
    signature = sign(aws_secret_access_key, string_to_sign)
    return f"{body}&Signature={escape(signature)}"


def indexed_param(key: str, values: Union[None, str, Iterable[Any]]) -> Dict[str, Any]:
    """Flatten a list into 1-based numbered parameters.

    ``indexed_param("AvailabilityZones.member.%d", ["a", "b"])`` gives
    ``{"AvailabilityZones.member.1": "a", "AvailabilityZones.member.2": "b"}``.
    A single string is treated as a one-element list.
    """
    if values is None:
        return {}
    if isinstance(values, str):
        values = [values]
    return {key % index: value for index, value in enumerate(values, start=1)}


TAG_FIELDS = ("Key", "Value", "PropagateAtLaunch", "ResourceId", "ResourceType")


def indexed_tags(tags: Union[None, Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> Dict[str, Any]:
    """Flatten tags into ``Tags.member.N.<Field>`` parameters.

    Accepts either a ``{key: value}`` mapping or a list of tag mappings
    using the API's field names.
    """
    if not tags:
        return {}
    if isinstance(tags, Mapping):
        tags = [{"Key": key, "Value": value} for key, value in tags.items()]

    params: Dict[str, Any] = {}
    for index, tag in enumerate(tags, start=1):
        for field_name in TAG_FIELDS:
            if tag.get(field_name) is not None:
                params[f"Tags.member.{index}.{field_name}"] = tag[field_name]
    return params


def member_list(key: str, values: Union[None, str, Iterable[Any]]) -> Dict[str, Any]:
    """Shortcut for ``indexed_param(f"{key}.member.%d", values)``."""
    return indexed_param(f"{key}.member.%d", values)


def _flatten_value(prefix: str, value: Any, flat: Dict[str, Any]) -> None:
    if isinstance(value, Mapping):
        for name, inner in value.items():
            _flatten_value(f"{prefix}.{name}", inner, flat)
    else:
        flat[prefix] = value


def flatten_members(params: Mapping[str, Any], list_keys: Iterable[str]) -> Dict[str, Any]:
    """Expand the list-valued entries named in ``list_keys`` into member params.

    Members that are mappings are expanded further, so a block device
    mapping becomes ``BlockDeviceMappings.member.1.Ebs.VolumeSize`` and so on.
    """
    flat: Dict[str, Any] = {}
    list_keys = set(list_keys)
    for key, value in params.items():
        if key in list_keys:
            for name, member in member_list(key, value).items():
                _flatten_value(name, member, flat)
        else:
            flat[key] = value
    return flat
