"""Type definitions for the iyzico facade."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol


class SignatureScheme(Enum):
    """HMAC-SHA256 signature encodings used by iyzico.

    Each value is a ``(joiner, encoding)`` pair.
    """
    COLON_SEPARATED_HEX = (":", "hex")
    COLON_SEPARATED_BASE64 = (":", "base64")
    CONCATENATED_HEX = ("", "hex")

    @property
    def joiner(self) -> str:
        return self.value[0]

    @property
    def encoding(self) -> str:
        return self.value[1]


class Flow(Enum):
    """Signed iyzico flows, each with a fixed field order."""
    PAYMENT = "payment"
    THREEDS_INITIALIZE = "threeds_initialize"
    CHECKOUT_INITIALIZE = "checkout_initialize"
    CHECKOUT_RETRIEVE = "checkout_retrieve"
    CALLBACK = "callback"
    WEBHOOK_CHECKOUT_FORM = "webhook_checkout_form"
    WEBHOOK_API = "webhook_api"


@dataclass
class WebhookEvent:
    """Verified webhook notification from iyzico."""
    event_type: str
    payment_id: str
    payment_conversation_id: str
    status: str
    signature: str
    payload: Dict[str, Any]
    token: Optional[str] = None

    @property
    def is_checkout_form(self) -> bool:
        return self.token is not None


@dataclass
class CallbackParams:
    """Parameters iyzico posts to the callback (return) URL."""
    conversation_id: str
    md_status: str
    payment_id: str
    status: str
    signature: Optional[str] = None
    conversation_data: str = ""

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "CallbackParams":
        def text(key: str) -> str:
            value = params.get(key)
            return "" if value is None else str(value)

        return cls(
            conversation_id=text("conversationId"),
            md_status=text("mdStatus"),
            payment_id=text("paymentId"),
            status=text("status"),
            signature=params.get("signature") or None,
            conversation_data=text("conversationData"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Back to iyzico's camelCase parameter names."""
        return {
            "conversationData": self.conversation_data,
            "conversationId": self.conversation_id,
            "mdStatus": self.md_status,
            "paymentId": self.payment_id,
            "status": self.status,
            "signature": self.signature,
        }


@dataclass
class VerifiedResponse:
    """Decoded vendor response together with its signature check."""
    data: Dict[str, Any]
    verified: bool
    calculated: str = ""
    errors: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.data.get("status") == "success"

    @property
    def signature(self) -> Optional[str]:
        return self.data.get("signature")


class Logger(Protocol):
    """Logger protocol."""
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
