"""Request builders for the iyzipay SDK.

The SDK takes plain dictionaries keyed by iyzico's camelCase field names.
These helpers copy only the known keys that are actually set.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..exceptions import InvalidInputError

BUYER_KEYS = (
    "id", "name", "surname", "gsmNumber", "email", "identityNumber",
    "lastLoginDate", "registrationDate", "registrationAddress", "ip",
    "city", "country", "zipCode",
)
ADDRESS_KEYS = ("contactName", "city", "country", "address", "zipCode")
BASKET_ITEM_KEYS = ("id", "name", "category1", "category2", "itemType", "price")
CARD_KEYS = (
    "cardHolderName", "cardNumber", "expireMonth", "expireYear", "cvc",
    "registerCard", "cardAlias", "cardUserKey", "cardToken",
)

DEFAULT_CURRENCY = "TRY"
DEFAULT_PAYMENT_CHANNEL = "WEB"
DEFAULT_PAYMENT_GROUP = "PRODUCT"


def _copy(source: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: source[key] for key in keys if source.get(key) is not None}


def buyer(data: Mapping[str, Any]) -> Dict[str, Any]:
    return _copy(data, BUYER_KEYS)


def address(data: Mapping[str, Any]) -> Dict[str, Any]:
    return _copy(data, ADDRESS_KEYS)


def payment_card(data: Mapping[str, Any]) -> Dict[str, Any]:
    return _copy(data, CARD_KEYS)


def basket_item(data: Mapping[str, Any]) -> Dict[str, Any]:
    item = _copy(data, BASKET_ITEM_KEYS)
    if "price" in item:
        item["price"] = str(item["price"])
    return item


def basket_items(items: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [basket_item(item) for item in items]


def base_request(
    locale: str,
    conversation_id: Optional[str],
    overrides: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Locale and conversation id, taken from ``overrides`` when set there."""
    overrides = overrides or {}
    request = {"locale": overrides.get("locale") or locale}
    conversation = overrides.get("conversationId") or conversation_id
    if conversation is not None:
        request["conversationId"] = str(conversation)
    return request


def order_request(
    order: Mapping[str, Any],
    locale: str,
    conversation_id: Optional[str],
    with_channel: bool = True
) -> Dict[str, Any]:
    """
    Pricing part of a payment / checkout request.

    Args:
        order: ``price`` is required; ``paidPrice`` defaults to ``price``
        locale: Default locale
        conversation_id: Default conversation id
        with_channel: Include installment and payment channel (card flows)

    Raises:
        InvalidInputError: If ``order`` has no price
    """
    if order.get("price") is None:
        raise InvalidInputError("order.price")

    request = base_request(locale, conversation_id, order)
    request["price"] = str(order["price"])
    paid_price = order.get("paidPrice")
    request["paidPrice"] = str(paid_price if paid_price is not None else order["price"])
    request["currency"] = order.get("currency") or DEFAULT_CURRENCY

    if order.get("basketId"):
        request["basketId"] = str(order["basketId"])
    request["paymentGroup"] = order.get("paymentGroup") or DEFAULT_PAYMENT_GROUP

    if with_channel:
        request["installment"] = str(int(order.get("installment") or 1))
        request["paymentChannel"] = order.get("paymentChannel") or DEFAULT_PAYMENT_CHANNEL
    return request


def checkout_request(
    order: Mapping[str, Any],
    locale: str,
    conversation_id: Optional[str],
    callback_url: str
) -> Dict[str, Any]:
    """Checkout form / Pay with iyzico initialize pricing and options."""
    request = order_request(order, locale, conversation_id, with_channel=False)
    request["callbackUrl"] = callback_url

    installments = order.get("enabledInstallments")
    if installments:
        request["enabledInstallments"] = [int(value) for value in installments]
    if order.get("cardUserKey"):
        request["cardUserKey"] = str(order["cardUserKey"])
    return request


REFUND_CURRENCIES = ("TRY", "EUR", "USD", "GBP", "IRR")


def require_text(value: Any, name: str) -> str:
    """Return ``value`` stripped, or raise if nothing is left."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise InvalidInputError(name)
    return text


def normalize_price(value: Any, name: str = "price") -> str:
    """
    Positive amount with two decimals; ``"10,5"`` is read as ``10.5``.

    Raises:
        InvalidInputError: If the amount is missing, not numeric or not positive
    """
    text = require_text(value, name).replace(",", ".")
    try:
        amount = float(text)
    except ValueError:
        raise InvalidInputError(name, f"{name} must be a number") from None
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidInputError(name, f"{name} must be greater than zero")
    return f"{amount:.2f}"


def normalize_currency(value: Any) -> str:
    """Upper-cased refund currency, limited to the ones iyzico refunds in."""
    currency = require_text(value, "currency").upper()
    if currency not in REFUND_CURRENCIES:
        raise InvalidInputError("currency", f"Unsupported currency: {currency}")
    return currency


def cancel_request(
    payment_id: Any,
    locale: str,
    conversation_id: Optional[str],
    ip: Optional[str] = None
) -> Dict[str, Any]:
    request = base_request(locale, conversation_id)
    request["paymentId"] = require_text(payment_id, "paymentId")
    if ip:
        request["ip"] = ip
    return request


def refund_request(
    payment_transaction_id: Any,
    price: Any,
    locale: str,
    conversation_id: Optional[str],
    currency: Any = DEFAULT_CURRENCY,
    ip: Optional[str] = None,
    reason: Optional[str] = None,
    description: Optional[str] = None
) -> Dict[str, Any]:
    """Refund of a single basket item transaction."""
    request = base_request(locale, conversation_id)
    request["paymentTransactionId"] = require_text(
        payment_transaction_id, "paymentTransactionId"
    )
    request["price"] = normalize_price(price)
    request["currency"] = normalize_currency(currency)
    for key, value in (("ip", ip), ("reason", reason), ("description", description)):
        if value:
            request[key] = value
    return request


def amount_base_refund_request(
    payment_id: Any,
    price: Any,
    locale: str,
    conversation_id: Optional[str],
    ip: Optional[str] = None
) -> Dict[str, Any]:
    """Refund of an amount against the whole payment; price goes out as a number."""
    request = base_request(locale, conversation_id)
    request["paymentId"] = require_text(payment_id, "paymentId")
    request["price"] = float(normalize_price(price))
    if ip:
        request["ip"] = ip
    return request
