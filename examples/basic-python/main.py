"""
Basic Python example for iyzico webhooks

This is a minimal working example showing how to:
- Load iyzico credentials from the environment
- Receive and verify X-Iyz-Signature-V3 webhooks
- Verify the signed 3DS callback parameters
"""

import json
import logging
from urllib.parse import parse_qsl
from wsgiref.simple_server import make_server

from dotenv import load_dotenv

from iyzico_facade import IyzicoClient, IyzicoWebhook, WebhookEvent, get_settings

# Load environment variables
load_dotenv()

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())

webhook = IyzicoWebhook(secret_key=settings.secret)
client = IyzicoClient(settings)


# Handle webhook events
@webhook.on_webhook
def handle_webhook(event: WebhookEvent):
    print(f"📬 Received webhook: {event.event_type}")
    print(f"   Payment: {event.payment_id} ({event.status})")

    if event.is_checkout_form:
        print(f"   Checkout form token: {event.token}")


@webhook.on_error
def on_error(error):
    print(f"❌ Error: {error}")


def app(environ, start_response):
    path = environ.get("PATH_INFO", "")
    length = int(environ.get("CONTENT_LENGTH") or 0)
    body = environ["wsgi.input"].read(length)
    headers = {
        key[5:].replace("_", "-").title(): value
        for key, value in environ.items()
        if key.startswith("HTTP_")
    }

    if path == "/iyzico/webhook":
        ok = webhook.handle_http_webhook(body, headers)
    elif path == "/iyzico/callback":
        params = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
        ok = client.verify_callback(params)
        if ok and params.get("mdStatus") == "1":
            result = client.complete_threeds(params["paymentId"], params.get("conversationData"))
            ok = result.verified and result.succeeded
    else:
        start_response("404 Not Found", [("Content-Type", "application/json")])
        return [b"{}"]

    status = "200 OK" if ok else "400 Bad Request"
    start_response(status, [("Content-Type", "application/json")])
    return [json.dumps({"accepted": ok}).encode("utf-8")]


# Start
if __name__ == "__main__":
    print("Listening for iyzico notifications on :8000 ...")
    with make_server("", 8000, app) as server:
        server.serve_forever()
