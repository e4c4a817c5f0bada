"""iyzico payment gateway facade with signature verification."""

from .client import IyzicoClient
from .config import IyzicoSettings, get_settings
from .exceptions import (
    IyzicoError,
    InvalidInputError,
    MissingSignatureError,
    ConfigurationError
)
from .types import (
    SignatureScheme,
    Flow,
    WebhookEvent,
    CallbackParams,
    VerifiedResponse
)
from .utils.signature import (
    SignatureVerifier,
    compute,
    verify,
    verify_webhook_v3
)
from .webhook import IyzicoWebhook

__version__ = "1.0.0"
__all__ = [
    "IyzicoClient",
    "IyzicoSettings",
    "get_settings",
    "IyzicoWebhook",
    "SignatureVerifier",
    "compute",
    "verify",
    "verify_webhook_v3",
    "SignatureScheme",
    "Flow",
    "WebhookEvent",
    "CallbackParams",
    "VerifiedResponse",
    "IyzicoError",
    "InvalidInputError",
    "MissingSignatureError",
    "ConfigurationError"
]
