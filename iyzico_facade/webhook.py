"""iyzico webhook receiver."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .exceptions import MissingSignatureError
from .types import Logger, WebhookEvent
from .utils import fields as signed_fields
from .utils.signature import SIGNATURE_HEADER, SignatureVerifier, find_signature_header

Payload = Union[Mapping[str, Any], bytes, str]


class IyzicoWebhook:
    """
    iyzico webhook receiver.

    Verifies the X-Iyz-Signature-V3 header and hands verified events to the
    registered handler. Plug ``handle_http_webhook`` into any web framework
    and answer 200 when it returns True.

    Example:
        >>> webhook = IyzicoWebhook(secret_key="sandbox-secret")
        >>>
        >>> @webhook.on_webhook
        >>> def handle(event):
        ...     print(event.event_type, event.status)
        >>>
        >>> ok = webhook.handle_http_webhook(request.body, request.headers)
    """

    def __init__(
        self,
        secret_key: Union[str, bytes],
        logger: Optional[Logger] = None
    ):
        """
        Initialize IyzicoWebhook.

        Args:
            secret_key: Merchant secret key
            logger: Custom logger instance

        Raises:
            InvalidInputError: If the secret key is empty
        """
        self.logger = logger or logging.getLogger(__name__)
        self.verifier = SignatureVerifier(secret_key, logger=self.logger)

        # Event handlers
        self._webhook_handler: Optional[Callable] = None
        self._error_handler: Optional[Callable] = None

    def on_webhook(self, handler: Callable[[WebhookEvent], Any]):
        """
        Register webhook event handler (decorator).

        A handler returning False marks the event as not processed.
        """
        self._webhook_handler = handler
        return handler

    def on_error(self, handler: Callable[[Exception], None]):
        """Register error event handler (decorator)."""
        self._error_handler = handler
        return handler

    def parse_event(self, payload: Payload, headers: Mapping[str, str]) -> Optional[WebhookEvent]:
        """
        Decode and verify a webhook.

        Returns:
            The event, or None when the signature is missing or invalid
        """
        body = self._decode(payload)
        if body is None:
            return None

        try:
            valid = self.verifier.verify_webhook(body, headers)
        except MissingSignatureError as e:
            self.logger.warning(f"Rejected webhook: {e.message}")
            return None

        if not valid:
            return None

        payment_id = signed_fields.webhook_payment_id(body)

        event = WebhookEvent(
            event_type=str(body.get("iyziEventType") or ""),
            payment_id=str(payment_id or ""),
            payment_conversation_id=str(body.get("paymentConversationId") or ""),
            status=str(body.get("status") or ""),
            signature=find_signature_header(headers) or "",
            payload=body,
            token=body.get("token"),
        )
        self.logger.debug(f"Received webhook: {event.event_type} ({event.payment_id})")
        return event

    def handle_http_webhook(self, payload: Payload, headers: Mapping[str, str]) -> bool:
        """
        Handle an HTTP webhook.

        Args:
            payload: Webhook body (decoded mapping or raw JSON)
            headers: HTTP headers

        Returns:
            True if the webhook was valid and processed
        """
        event = self.parse_event(payload, headers)
        if event is None:
            return False

        if not self._webhook_handler:
            self.logger.warning("No webhook handler registered")
            return True

        try:
            result = self._webhook_handler(event)
            if asyncio.iscoroutine(result):
                result = asyncio.run(result)
        except Exception as e:
            return self._report(e)

        return result is not False

    async def handle_http_webhook_async(
        self,
        payload: Payload,
        headers: Mapping[str, str]
    ) -> bool:
        """Handle an HTTP webhook from inside a running event loop."""
        event = self.parse_event(payload, headers)
        if event is None:
            return False

        if not self._webhook_handler:
            self.logger.warning("No webhook handler registered")
            return True

        try:
            result = self._webhook_handler(event)
            if asyncio.iscoroutine(result):
                result = await result
        except Exception as e:
            return self._report(e)

        return result is not False

    def _report(self, error: Exception) -> bool:
        self.logger.error(f"Webhook handler error: {error}")
        if self._error_handler:
            self._error_handler(error)
        return False

    def _decode(self, payload: Payload) -> Optional[Dict[str, Any]]:
        if isinstance(payload, Mapping):
            return dict(payload)
        try:
            body = json.loads(payload)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Malformed webhook body: {e}")
            return None
        if not isinstance(body, dict):
            self.logger.warning("Webhook body is not a JSON object")
            return None
        return body


__all__ = ["IyzicoWebhook", "SIGNATURE_HEADER"]
