import base64
import hashlib
import hmac

import pytest

from conftest import SECRET, hmac_hex
from iyzico_facade import (
    CallbackParams,
    Flow,
    InvalidInputError,
    MissingSignatureError,
    SignatureScheme,
    SignatureVerifier,
    compute,
    verify,
    verify_webhook_v3,
)
from iyzico_facade.utils.signature import find_signature_header, scheme_for

PAYMENT = ["12345", "TRY", "B001", "conv-1", "10.00", "10.00"]
ALL_SCHEMES = list(SignatureScheme)


def test_colon_separated_hex_vector():
    expected = hmac_hex("12345:TRY:B001:conv-1:10.00:10.00")
    assert compute(PAYMENT, SECRET, SignatureScheme.COLON_SEPARATED_HEX) == expected


def test_colon_separated_base64_vector():
    digest = hmac.new(SECRET.encode(), b"conv-1:tok1", hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode()
    assert compute(["conv-1", "tok1"], SECRET, SignatureScheme.COLON_SEPARATED_BASE64) == expected


def test_concatenated_hex_vector():
    expected = hmac_hex("abc")
    assert compute(["a", "b", "c"], SECRET, SignatureScheme.CONCATENATED_HEX) == expected


def test_hex_output_is_lowercase():
    signature = compute(PAYMENT, SECRET, SignatureScheme.COLON_SEPARATED_HEX)
    assert signature == signature.lower()
    assert len(signature) == 64


def test_bytes_secret_matches_text_secret():
    scheme = SignatureScheme.COLON_SEPARATED_HEX
    assert compute(PAYMENT, SECRET.encode(), scheme) == compute(PAYMENT, SECRET, scheme)


def test_none_is_kept_as_empty_field():
    # callback with empty conversationData: "::1:22484292:success"
    fields = [None, "", "1", "22484292", "success"]
    expected = hmac_hex("::1:22484292:success")
    assert compute(fields, SECRET, SignatureScheme.COLON_SEPARATED_HEX) == expected


def test_non_string_values_are_stringified():
    expected = hmac_hex("1:10.5:true")
    assert compute([1, 10.5, True], SECRET, SignatureScheme.COLON_SEPARATED_HEX) == expected


def test_whole_number_floats_lose_the_fraction():
    expected = hmac_hex("100:1:10.5")
    assert compute([100.0, 1.0, 10.5], SECRET, SignatureScheme.COLON_SEPARATED_HEX) == expected


def test_non_utf8_bytes_secret_signs_webhook():
    key = b"\xffkey"
    payload = {"iyziEventType": "X", "paymentId": "9", "status": "S"}
    signature = hmac.new(key, key + b"X9S", hashlib.sha256).hexdigest()
    headers = {"X-Iyz-Signature-V3": signature}

    assert verify_webhook_v3(payload, headers, key) is True
    assert SignatureVerifier(key).verify_webhook(payload, headers) is True


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_compute_is_deterministic(scheme):
    assert compute(PAYMENT, SECRET, scheme) == compute(PAYMENT, SECRET, scheme)


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_verify_accepts_computed_signature(scheme):
    signature = compute(PAYMENT, SECRET, scheme)
    assert verify(signature, PAYMENT, SECRET, scheme) is True


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_verify_rejects_single_character_mutation(scheme):
    signature = compute(PAYMENT, SECRET, scheme)
    for index in (0, len(signature) // 2, len(signature) - 1):
        replacement = "0" if signature[index] != "0" else "1"
        mutated = signature[:index] + replacement + signature[index + 1:]
        assert verify(mutated, PAYMENT, SECRET, scheme) is False


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_field_order_is_significant(scheme):
    swapped = [PAYMENT[1], PAYMENT[0]] + PAYMENT[2:]
    assert compute(swapped, SECRET, scheme) != compute(PAYMENT, SECRET, scheme)


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_empty_received_signature_never_matches(scheme):
    assert verify("", PAYMENT, SECRET, scheme) is False
    assert verify(None, PAYMENT, SECRET, scheme) is False


def test_verify_rejects_other_secret():
    signature = compute(PAYMENT, "otherSecret", SignatureScheme.COLON_SEPARATED_HEX)
    assert verify(signature, PAYMENT, SECRET, SignatureScheme.COLON_SEPARATED_HEX) is False


def test_verify_handles_non_ascii_received_signature():
    assert verify("ğüş", PAYMENT, SECRET, SignatureScheme.COLON_SEPARATED_HEX) is False


@pytest.mark.parametrize("secret", ["", b"", None])
def test_empty_secret_is_invalid_input(secret):
    with pytest.raises(InvalidInputError) as exc:
        compute(PAYMENT, secret, SignatureScheme.COLON_SEPARATED_HEX)
    assert exc.value.code == "IYZ001"


def test_schemes_per_flow():
    assert scheme_for(Flow.PAYMENT) is SignatureScheme.COLON_SEPARATED_HEX
    assert scheme_for(Flow.THREEDS_INITIALIZE) is SignatureScheme.COLON_SEPARATED_HEX
    assert scheme_for(Flow.CHECKOUT_INITIALIZE) is SignatureScheme.COLON_SEPARATED_BASE64
    assert scheme_for(Flow.CHECKOUT_RETRIEVE) is SignatureScheme.COLON_SEPARATED_HEX
    assert scheme_for(Flow.CALLBACK) is SignatureScheme.COLON_SEPARATED_HEX
    assert scheme_for(Flow.WEBHOOK_CHECKOUT_FORM) is SignatureScheme.CONCATENATED_HEX
    assert scheme_for(Flow.WEBHOOK_API) is SignatureScheme.CONCATENATED_HEX


class TestHeaderLookup:
    def test_canonical_name(self):
        assert find_signature_header({"X-Iyz-Signature-V3": "abc"}) == "abc"

    def test_lowercase_name(self):
        assert find_signature_header({"x-iyz-signature-v3": "abc"}) == "abc"

    def test_mixed_case_name(self):
        assert find_signature_header({"X-IYZ-SIGNATURE-V3": "abc"}) == "abc"

    def test_missing(self):
        assert find_signature_header({"Content-Type": "application/json"}) is None

    def test_empty_value_counts_as_missing(self):
        assert find_signature_header({"X-Iyz-Signature-V3": ""}) is None


class TestWebhookV3:
    checkout_payload = {
        "token": "tok1",
        "iyziEventType": "X",
        "iyziPaymentId": "99",
        "paymentConversationId": "c1",
        "status": "SUCCESS",
    }
    api_payload = {
        "iyziEventType": "X",
        "paymentId": "99",
        "paymentConversationId": "c1",
        "status": "SUCCESS",
    }

    def test_token_selects_checkout_form_order(self):
        signature = hmac_hex(f"{SECRET}X99tok1c1SUCCESS")
        headers = {"X-Iyz-Signature-V3": signature}
        assert verify_webhook_v3(self.checkout_payload, headers, SECRET) is True

    def test_checkout_form_payload_does_not_use_api_order(self):
        signature = hmac_hex(f"{SECRET}X99c1SUCCESS")
        headers = {"X-Iyz-Signature-V3": signature}
        assert verify_webhook_v3(self.checkout_payload, headers, SECRET) is False

    def test_api_order_without_token(self):
        signature = hmac_hex(f"{SECRET}X99c1SUCCESS")
        headers = {"X-Iyz-Signature-V3": signature}
        assert verify_webhook_v3(self.api_payload, headers, SECRET) is True

    def test_lowercase_header_is_found(self):
        signature = hmac_hex(f"{SECRET}X99c1SUCCESS")
        upper = verify_webhook_v3(self.api_payload, {"X-Iyz-Signature-V3": signature}, SECRET)
        lower = verify_webhook_v3(self.api_payload, {"x-iyz-signature-v3": signature}, SECRET)
        assert upper is lower is True

    def test_missing_header_raises(self):
        with pytest.raises(MissingSignatureError) as exc:
            verify_webhook_v3(self.api_payload, {}, SECRET)
        assert exc.value.code == "IYZ002"

    def test_tampered_status_is_rejected(self):
        signature = hmac_hex(f"{SECRET}X99c1SUCCESS")
        payload = dict(self.api_payload, status="FAILURE")
        assert verify_webhook_v3(payload, {"X-Iyz-Signature-V3": signature}, SECRET) is False


class TestSignatureVerifier:
    def test_rejects_empty_secret(self):
        with pytest.raises(InvalidInputError):
            SignatureVerifier("")

    def test_repr_hides_secret(self):
        assert SECRET not in repr(SignatureVerifier(SECRET))

    def test_verify_payment(self):
        response = {
            "paymentId": "12345",
            "currency": "TRY",
            "basketId": "B001",
            "conversationId": "conv-1",
            "paidPrice": "10.00",
            "price": "10.00",
            "signature": hmac_hex("12345:TRY:B001:conv-1:10.00:10.00"),
        }
        assert SignatureVerifier(SECRET).verify_payment(response) is True

    def test_verify_threeds_initialize(self):
        response = {
            "paymentId": "12345",
            "conversationId": "conv-1",
            "signature": hmac_hex("12345:conv-1"),
        }
        assert SignatureVerifier(SECRET).verify_threeds_initialize(response) is True

    def test_verify_checkout_initialize_uses_base64(self):
        digest = hmac.new(SECRET.encode(), b"conv-1:tok1", hashlib.sha256).digest()
        response = {
            "conversationId": "conv-1",
            "token": "tok1",
            "signature": base64.b64encode(digest).decode(),
        }
        assert SignatureVerifier(SECRET).verify_checkout_initialize(response) is True

    def test_verify_checkout_retrieve(self):
        response = {
            "paymentStatus": "SUCCESS",
            "paymentId": "12345",
            "currency": "TRY",
            "basketId": "B001",
            "conversationId": "conv-1",
            "paidPrice": 10.5,
            "price": 10.5,
            "token": "tok1",
        }
        response["signature"] = hmac_hex("SUCCESS:12345:TRY:B001:conv-1:10.5:10.5:tok1")
        assert SignatureVerifier(SECRET).verify_checkout_retrieve(response) is True

    def test_verify_callback_with_empty_conversation_data(self):
        params = {
            "conversationId": "",
            "mdStatus": "1",
            "paymentId": "22484292",
            "status": "success",
            "signature": hmac_hex("::1:22484292:success"),
        }
        assert SignatureVerifier(SECRET).verify_callback(params) is True

    def test_verify_payment_with_whole_number_prices(self):
        response = {
            "paymentId": "12345",
            "currency": "TRY",
            "basketId": "B001",
            "conversationId": "conv-1",
            "paidPrice": 100.0,
            "price": 100.0,
            "signature": hmac_hex("12345:TRY:B001:conv-1:100:100"),
        }
        assert SignatureVerifier(SECRET).verify_payment(response) is True

    def test_verify_callback_accepts_typed_params(self):
        params = CallbackParams(
            conversation_id="conv-1",
            md_status="1",
            payment_id="22484292",
            status="success",
            signature=hmac_hex(":conv-1:1:22484292:success"),
        )
        assert SignatureVerifier(SECRET).verify_callback(params) is True

    def test_verify_callback_keeps_zero_md_status(self):
        params = {
            "conversationId": "conv-1",
            "mdStatus": 0,
            "paymentId": "22484292",
            "status": "failure",
            "signature": hmac_hex(":conv-1:0:22484292:failure"),
        }
        assert SignatureVerifier(SECRET).verify_callback(params) is True

    def test_missing_signature_field_is_false(self):
        assert SignatureVerifier(SECRET).verify_payment({"paymentId": "1"}) is False

    def test_compute_for_returns_diagnostic_signature(self):
        payload = {"paymentId": "12345", "conversationId": "conv-1"}
        verifier = SignatureVerifier(SECRET)
        assert verifier.compute_for(Flow.THREEDS_INITIALIZE, payload) == hmac_hex("12345:conv-1")

    def test_verify_webhook_missing_header_raises(self):
        with pytest.raises(MissingSignatureError):
            SignatureVerifier(SECRET).verify_webhook({"status": "SUCCESS"}, {})
