"""iyzico client facade."""

import json
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import iyzipay

from .config import IyzicoSettings, get_settings
from .exceptions import InvalidInputError
from .types import CallbackParams, Flow, Logger, VerifiedResponse
from .utils import builders
from .utils.signature import SignatureVerifier


class IyzicoClient:
    """
    Thin facade over the iyzipay SDK.

    Builds request dictionaries, calls the SDK, decodes the response and
    checks the signature iyzico attached to it.

    Example:
        >>> client = IyzicoClient(IyzicoSettings(api_key="...", secret_key="..."))
        >>> result = client.retrieve_checkout_form(token)
        >>> if result.verified and result.succeeded:
        ...     mark_paid(result.data["basketId"])
    """

    def __init__(
        self,
        settings: Optional[IyzicoSettings] = None,
        sdk: Any = None,
        logger: Optional[Logger] = None
    ):
        """
        Initialize IyzicoClient.

        Args:
            settings: Credentials and defaults (default: environment settings)
            sdk: Module exposing the iyzipay resources (default: ``iyzipay``)
            logger: Custom logger instance

        Raises:
            ConfigurationError: If the API key or secret key is missing
        """
        self.settings = settings or get_settings()
        self.sdk = sdk or iyzipay
        self.logger = logger or logging.getLogger(__name__)

        self._options = self.settings.to_options()
        self.verifier = SignatureVerifier(self.settings.secret, logger=self.logger)

    # Payments

    def create_payment(
        self,
        order: Mapping[str, Any],
        card: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]]
    ) -> VerifiedResponse:
        """Non-3DS payment in a single step."""
        request = self._card_request(
            order, card, buyer, shipping_address, billing_address, basket_items
        )
        return self._call("Payment", "create", request, Flow.PAYMENT)

    def retrieve_payment(
        self,
        payment_id: Optional[str] = None,
        payment_conversation_id: Optional[str] = None
    ) -> VerifiedResponse:
        """
        Retrieve a payment by id and/or conversation id.

        Raises:
            InvalidInputError: If neither identifier is given
        """
        if payment_id is None and payment_conversation_id is None:
            raise InvalidInputError(
                "paymentId",
                "paymentId or paymentConversationId is required",
            )

        request = self._base_request()
        if payment_id is not None:
            request["paymentId"] = str(payment_id)
        if payment_conversation_id is not None:
            request["paymentConversationId"] = str(payment_conversation_id)
        return self._call("Payment", "retrieve", request, Flow.PAYMENT)

    # 3-D Secure

    def initialize_threeds(
        self,
        order: Mapping[str, Any],
        card: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]],
        callback_url: str
    ) -> VerifiedResponse:
        """Start a 3DS payment; ``data["threeDSHtmlContent"]`` holds the bank page."""
        request = self._card_request(
            order, card, buyer, shipping_address, billing_address, basket_items
        )
        request["callbackUrl"] = callback_url
        return self._call("ThreedsInitialize", "create", request, Flow.THREEDS_INITIALIZE)

    def complete_threeds(
        self,
        payment_id: str,
        conversation_data: Optional[str] = None
    ) -> VerifiedResponse:
        """Finish a 3DS payment with the values posted to the callback URL."""
        if not payment_id:
            raise InvalidInputError("paymentId")

        request = self._base_request()
        request["paymentId"] = str(payment_id)
        if conversation_data:
            request["conversationData"] = conversation_data
        return self._call("ThreedsPayment", "create", request, Flow.PAYMENT)

    # Hosted pages

    def initialize_checkout_form(
        self,
        order: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]],
        callback_url: str,
        pre_auth: bool = False
    ) -> VerifiedResponse:
        """Start a checkout form (optionally as pre-authorization)."""
        request = self._hosted_request(
            order, buyer, shipping_address, billing_address, basket_items, callback_url
        )
        resource = "CheckoutFormInitializePreAuth" if pre_auth else "CheckoutFormInitialize"
        return self._call(resource, "create", request, Flow.CHECKOUT_INITIALIZE)

    def retrieve_checkout_form(self, token: str) -> VerifiedResponse:
        """Fetch the checkout form result for ``token``."""
        return self._call(
            "CheckoutForm", "retrieve", self._token_request(token), Flow.CHECKOUT_RETRIEVE
        )

    def initialize_pwi(
        self,
        order: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]],
        callback_url: str
    ) -> VerifiedResponse:
        """Start a Pay with iyzico session."""
        request = self._hosted_request(
            order, buyer, shipping_address, billing_address, basket_items, callback_url
        )
        return self._call("PayWithIyzicoInitialize", "create", request, Flow.CHECKOUT_INITIALIZE)

    def retrieve_pwi(self, token: str) -> VerifiedResponse:
        return self._call(
            "PayWithIyzico", "retrieve", self._token_request(token), Flow.CHECKOUT_RETRIEVE
        )

    # Cancels and refunds (unsigned responses)

    def cancel_payment(self, payment_id: str, ip: Optional[str] = None) -> Dict[str, Any]:
        """
        Cancel a payment on the day it was taken.

        Raises:
            InvalidInputError: If ``payment_id`` is empty
        """
        request = builders.cancel_request(
            payment_id, self.settings.locale, self.settings.conversation_id, ip
        )
        return self._send("Cancel", "create", request)

    def refund(
        self,
        payment_transaction_id: str,
        price: Any,
        currency: str = builders.DEFAULT_CURRENCY,
        ip: Optional[str] = None,
        reason: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Refund part or all of one basket item transaction.

        Args:
            payment_transaction_id: ``paymentTransactionId`` of the basket item
            price: Amount to refund; ``"10,50"`` and ``10.5`` are both accepted
            currency: One of TRY, EUR, USD, GBP, IRR
            ip: Buyer IP address
            reason: iyzico refund reason code (e.g. ``other``)
            description: Free text sent with the refund

        Raises:
            InvalidInputError: If the id is empty, the price is not positive or
                the currency is not supported
        """
        request = builders.refund_request(
            payment_transaction_id,
            price,
            self.settings.locale,
            self.settings.conversation_id,
            currency=currency,
            ip=ip,
            reason=reason,
            description=description,
        )
        return self._send("Refund", "create", request)

    def amount_base_refund(
        self,
        payment_id: str,
        price: Any,
        ip: Optional[str] = None
    ) -> Dict[str, Any]:
        """Refund an amount against the whole payment rather than one item."""
        request = builders.amount_base_refund_request(
            payment_id, price, self.settings.locale, self.settings.conversation_id, ip
        )
        return self._send("AmountBaseRefund", "create", request)

    # Inbound

    def verify_callback(self, params: Mapping[str, Any]) -> bool:
        """Verify the signed parameters posted to the callback URL."""
        callback = CallbackParams.from_mapping(params)
        self.logger.debug(f"Verifying callback (payment: {callback.payment_id})")
        return self.verifier.verify_callback(callback)

    def verify_webhook(self, payload: Mapping[str, Any], headers: Mapping[str, str]) -> bool:
        """
        Verify a webhook V3 notification.

        Raises:
            MissingSignatureError: If the signature header is absent
        """
        return self.verifier.verify_webhook(payload, headers)

    # Internals

    def _base_request(self) -> Dict[str, Any]:
        return builders.base_request(self.settings.locale, self.settings.conversation_id)

    def _token_request(self, token: str) -> Dict[str, Any]:
        if not token:
            raise InvalidInputError("token")
        request = self._base_request()
        request["token"] = token
        return request

    def _card_request(
        self,
        order: Mapping[str, Any],
        card: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        request = builders.order_request(
            order, self.settings.locale, self.settings.conversation_id
        )
        request["paymentCard"] = builders.payment_card(card)
        request["buyer"] = builders.buyer(buyer)
        request["shippingAddress"] = builders.address(shipping_address)
        request["billingAddress"] = builders.address(billing_address)
        request["basketItems"] = builders.basket_items(basket_items)
        return request

    def _hosted_request(
        self,
        order: Mapping[str, Any],
        buyer: Mapping[str, Any],
        shipping_address: Mapping[str, Any],
        billing_address: Mapping[str, Any],
        basket_items: Iterable[Mapping[str, Any]],
        callback_url: str
    ) -> Dict[str, Any]:
        request = builders.checkout_request(
            order, self.settings.locale, self.settings.conversation_id, callback_url
        )
        request["buyer"] = builders.buyer(buyer)
        request["shippingAddress"] = builders.address(shipping_address)
        request["billingAddress"] = builders.address(billing_address)
        request["basketItems"] = builders.basket_items(basket_items)
        return request

    def _call(
        self,
        resource: str,
        method: str,
        request: Dict[str, Any],
        flow: Flow
    ) -> VerifiedResponse:
        """Call ``sdk.<resource>().<method>(request, options)`` and verify the result."""
        data = self._send(resource, method, request)

        if data.get("status") != "success":
            errors = {
                key: data.get(key)
                for key in ("errorCode", "errorMessage", "errorGroup")
                if data.get(key) is not None
            }
            return VerifiedResponse(data=data, verified=False, errors=errors)

        calculated = self.verifier.compute_for(flow, data)
        verified = self.verifier.verify_flow(flow, data)
        return VerifiedResponse(data=data, verified=verified, calculated=calculated)

    def _send(self, resource: str, method: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """Call ``sdk.<resource>().<method>(request, options)`` and decode the response."""
        self.logger.debug(
            f"Calling iyzico {resource}.{method} "
            f"(conversation: {request.get('conversationId')})"
        )
        handler = getattr(getattr(self.sdk, resource)(), method)
        data = self._decode(handler(request, self._options))

        if data.get("status") != "success":
            self.logger.warning(
                f"iyzico {resource}.{method} failed: "
                f"{data.get('errorCode')} {data.get('errorMessage')}"
            )
        return data

    @staticmethod
    def _decode(response: Any) -> Dict[str, Any]:
        """Decode the SDK's raw HTTP response into a dictionary."""
        if isinstance(response, Mapping):
            return dict(response)
        raw = response.read() if hasattr(response, "read") else response
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)
