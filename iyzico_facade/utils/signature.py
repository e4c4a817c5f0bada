"""HMAC signature verification utilities."""

import base64
import hashlib
import hmac
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from ..exceptions import InvalidInputError, MissingSignatureError
from ..types import CallbackParams, Flow, Logger, SignatureScheme
from . import fields as signed_fields

Secret = Union[str, bytes]

SIGNATURE_HEADER = "X-Iyz-Signature-V3"

_SCHEMES = {
    Flow.PAYMENT: SignatureScheme.COLON_SEPARATED_HEX,
    Flow.THREEDS_INITIALIZE: SignatureScheme.COLON_SEPARATED_HEX,
    Flow.CHECKOUT_INITIALIZE: SignatureScheme.COLON_SEPARATED_BASE64,
    Flow.CHECKOUT_RETRIEVE: SignatureScheme.COLON_SEPARATED_HEX,
    Flow.CALLBACK: SignatureScheme.COLON_SEPARATED_HEX,
    Flow.WEBHOOK_CHECKOUT_FORM: SignatureScheme.CONCATENATED_HEX,
    Flow.WEBHOOK_API: SignatureScheme.CONCATENATED_HEX,
}


def scheme_for(flow: Flow) -> SignatureScheme:
    """Return the signature scheme iyzico uses for ``flow``."""
    return _SCHEMES[flow]


def _secret_bytes(secret: Optional[Secret]) -> bytes:
    if not secret:
        raise InvalidInputError("secret_key")
    if isinstance(secret, bytes):
        return secret
    return secret.encode("utf-8")


def _format_number(value: float) -> str:
    # whole amounts are signed without a fraction: 100.0 -> "100"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _to_field(value: Any) -> bytes:
    # None keeps its slot as an empty string
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, float):
        return _format_number(value).encode("utf-8")
    return str(value).encode("utf-8")


def serialize(fields: Iterable[Any], scheme: SignatureScheme) -> bytes:
    """Join ``fields`` into the payload signed under ``scheme``.

    Text is UTF-8 encoded; ``bytes`` values (the secret in webhook field
    sets) are signed as they are.
    """
    return scheme.joiner.encode("utf-8").join(_to_field(value) for value in fields)


def compute(
    fields: Iterable[Any],
    secret: Secret,
    scheme: SignatureScheme
) -> str:
    """
    Compute an iyzico HMAC-SHA256 signature.

    Args:
        fields: Signed values in their fixed order (None becomes "")
        secret: Merchant secret key
        scheme: Joiner and output encoding to use

    Returns:
        Lowercase hex or base64 encoded digest

    Raises:
        InvalidInputError: If the secret key is empty
    """
    key = _secret_bytes(secret)
    payload = serialize(fields, scheme)
    digest = hmac.new(key, payload, hashlib.sha256).digest()

    if scheme.encoding == "base64":
        return base64.b64encode(digest).decode("ascii")
    return digest.hex()


def verify(
    received: Optional[str],
    fields: Iterable[Any],
    secret: Secret,
    scheme: SignatureScheme
) -> bool:
    """
    Verify a received signature in constant time.

    Args:
        received: Signature sent by iyzico (untrusted)
        fields: Signed values in their fixed order
        secret: Merchant secret key
        scheme: Joiner and output encoding to use

    Returns:
        True if the signature matches; False when it is empty or differs
    """
    expected = compute(fields, secret, scheme)
    if not received or not isinstance(received, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


def find_signature_header(
    headers: Mapping[str, str],
    name: str = SIGNATURE_HEADER
) -> Optional[str]:
    """Case-insensitive header lookup."""
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    if value is None:
        wanted = name.lower()
        for key, candidate in headers.items():
            if key.lower() == wanted:
                value = candidate
                break
    return value or None


def verify_webhook_v3(
    payload: Mapping[str, Any],
    headers: Mapping[str, str],
    secret: Secret
) -> bool:
    """
    Verify the X-Iyz-Signature-V3 header of an iyzico webhook.

    Payloads with a ``token`` are hosted-page (checkout form / PWI) events;
    everything else is treated as a direct API event.

    Args:
        payload: Decoded webhook JSON body
        headers: HTTP request headers
        secret: Merchant secret key

    Returns:
        True if the signature is valid

    Raises:
        MissingSignatureError: If the signature header is absent
    """
    signature = find_signature_header(headers)
    if signature is None:
        raise MissingSignatureError(SIGNATURE_HEADER)

    key = _secret_bytes(secret)
    if signed_fields.is_checkout_form_event(payload):
        flow = Flow.WEBHOOK_CHECKOUT_FORM
        values = signed_fields.webhook_checkout_form_fields(payload, key)
    else:
        flow = Flow.WEBHOOK_API
        values = signed_fields.webhook_api_fields(payload, key)

    return verify(signature, values, secret, scheme_for(flow))


class SignatureVerifier:
    """
    Verifies iyzico signatures for a single merchant secret.

    Example:
        >>> verifier = SignatureVerifier(settings.secret_key.get_secret_value())
        >>> verifier.verify_payment(response_body)
        True
    """

    def __init__(self, secret: Secret, logger: Optional[Logger] = None):
        """
        Initialize the verifier.

        Args:
            secret: Merchant secret key
            logger: Custom logger instance

        Raises:
            InvalidInputError: If the secret key is empty
        """
        self._secret = _secret_bytes(secret)
        self.logger = logger or logging.getLogger(__name__)

    def __repr__(self) -> str:
        return "SignatureVerifier(secret=***)"

    def fields_for(self, flow: Flow, payload: Mapping[str, Any]) -> signed_fields.FieldList:
        """Signed fields of ``payload`` for ``flow``, in order."""
        if flow is Flow.WEBHOOK_CHECKOUT_FORM:
            return signed_fields.webhook_checkout_form_fields(payload, self._secret)
        if flow is Flow.WEBHOOK_API:
            return signed_fields.webhook_api_fields(payload, self._secret)
        return signed_fields.EXTRACTORS[flow](payload)

    def compute_for(self, flow: Flow, payload: Mapping[str, Any]) -> str:
        """Signature we expect iyzico to have sent for ``payload``."""
        return compute(self.fields_for(flow, payload), self._secret, scheme_for(flow))

    def verify_flow(
        self,
        flow: Flow,
        payload: Mapping[str, Any],
        received: Optional[str] = None
    ) -> bool:
        """
        Verify ``payload`` against its signature.

        Args:
            flow: Signed flow the payload belongs to
            payload: Decoded response or callback parameters
            received: Signature to check (default: ``payload["signature"]``)

        Returns:
            True if the signature is valid
        """
        if received is None:
            received = payload.get("signature")
        if not received:
            self.logger.warning(f"No signature to verify for {flow.value}")
            return False

        valid = verify(received, self.fields_for(flow, payload), self._secret, scheme_for(flow))
        if not valid:
            self.logger.warning(f"Signature mismatch for {flow.value}")
        return valid

    def verify_payment(self, response: Mapping[str, Any]) -> bool:
        return self.verify_flow(Flow.PAYMENT, response)

    def verify_threeds_initialize(self, response: Mapping[str, Any]) -> bool:
        return self.verify_flow(Flow.THREEDS_INITIALIZE, response)

    def verify_checkout_initialize(self, response: Mapping[str, Any]) -> bool:
        return self.verify_flow(Flow.CHECKOUT_INITIALIZE, response)

    def verify_checkout_retrieve(self, response: Mapping[str, Any]) -> bool:
        return self.verify_flow(Flow.CHECKOUT_RETRIEVE, response)

    def verify_callback(self, params: Union[CallbackParams, Mapping[str, Any]]) -> bool:
        """Verify callback (return URL) parameters including ``signature``."""
        if not isinstance(params, CallbackParams):
            params = CallbackParams.from_mapping(params)
        return self.verify_flow(Flow.CALLBACK, params.to_payload(), params.signature)

    def verify_webhook(self, payload: Mapping[str, Any], headers: Mapping[str, str]) -> bool:
        """
        Verify a webhook V3 notification.

        Raises:
            MissingSignatureError: If the signature header is absent
        """
        valid = verify_webhook_v3(payload, headers, self._secret)
        if not valid:
            self.logger.warning(
                f"Webhook signature mismatch (event: {payload.get('iyziEventType')})"
            )
        return valid
