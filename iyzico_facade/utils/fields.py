"""Signed field orders for each iyzico flow.

Every function takes a decoded payload (response body, callback parameters
or webhook body) and returns its signable fields in the exact order iyzico
signs them. Missing keys come back as ``None`` so that positions never shift.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from ..types import Flow

FieldList = List[Optional[Any]]

PAYMENT_FIELDS = (
    "paymentId", "currency", "basketId", "conversationId", "paidPrice", "price",
)
THREEDS_INITIALIZE_FIELDS = ("paymentId", "conversationId")
CHECKOUT_INITIALIZE_FIELDS = ("conversationId", "token")
CHECKOUT_RETRIEVE_FIELDS = (
    "paymentStatus", "paymentId", "currency", "basketId", "conversationId",
    "paidPrice", "price", "token",
)
CALLBACK_FIELDS = (
    "conversationData", "conversationId", "mdStatus", "paymentId", "status",
)


def _pick(payload: Mapping[str, Any], keys) -> FieldList:
    return [payload.get(key) for key in keys]


def payment_fields(payload: Mapping[str, Any]) -> FieldList:
    """Direct payment create/retrieve and 3DS auth result."""
    return _pick(payload, PAYMENT_FIELDS)


def threeds_initialize_fields(payload: Mapping[str, Any]) -> FieldList:
    return _pick(payload, THREEDS_INITIALIZE_FIELDS)


def checkout_initialize_fields(payload: Mapping[str, Any]) -> FieldList:
    """Checkout form and Pay with iyzico initialize."""
    return _pick(payload, CHECKOUT_INITIALIZE_FIELDS)


def checkout_retrieve_fields(payload: Mapping[str, Any]) -> FieldList:
    """Checkout form and Pay with iyzico retrieve."""
    return _pick(payload, CHECKOUT_RETRIEVE_FIELDS)


def callback_fields(params: Mapping[str, Any]) -> FieldList:
    """Callback (return URL) parameters; ``conversationData`` is often empty."""
    fields = _pick(params, CALLBACK_FIELDS)
    if fields[0] is None:
        fields[0] = ""
    return fields


def is_checkout_form_event(payload: Mapping[str, Any]) -> bool:
    """Webhooks carrying a ``token`` come from hosted-page flows."""
    return payload.get("token") is not None


def _payment_id(payload: Mapping[str, Any], preferred: str, fallback: str) -> Optional[Any]:
    value = payload.get(preferred)
    if value is None:
        value = payload.get(fallback)
    return value


def webhook_checkout_form_fields(payload: Mapping[str, Any], secret: Union[str, bytes]) -> FieldList:
    """X-Iyz-Signature-V3 fields for checkout form / hosted-page events.

    The secret key is itself the first signed field.
    """
    return [
        secret,
        payload.get("iyziEventType"),
        _payment_id(payload, "iyziPaymentId", "paymentId"),
        payload.get("token"),
        payload.get("paymentConversationId"),
        payload.get("status"),
    ]


def webhook_api_fields(payload: Mapping[str, Any], secret: Union[str, bytes]) -> FieldList:
    """X-Iyz-Signature-V3 fields for direct API events."""
    return [
        secret,
        payload.get("iyziEventType"),
        _payment_id(payload, "paymentId", "iyziPaymentId"),
        payload.get("paymentConversationId"),
        payload.get("status"),
    ]


def webhook_payment_id(payload: Mapping[str, Any]) -> Optional[Any]:
    """Payment id of a webhook, read from the key its event kind uses."""
    if is_checkout_form_event(payload):
        return _payment_id(payload, "iyziPaymentId", "paymentId")
    return _payment_id(payload, "paymentId", "iyziPaymentId")


# Flows whose field set does not include the secret.
EXTRACTORS: Dict[Flow, Any] = {
    Flow.PAYMENT: payment_fields,
    Flow.THREEDS_INITIALIZE: threeds_initialize_fields,
    Flow.CHECKOUT_INITIALIZE: checkout_initialize_fields,
    Flow.CHECKOUT_RETRIEVE: checkout_retrieve_fields,
    Flow.CALLBACK: callback_fields,
}
