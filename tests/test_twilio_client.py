"""
Testes do cliente Twilio: assinatura do webhook, TwiML e envio pela REST API.
"""

import asyncio
import base64
import hashlib
import hmac
from urllib.parse import parse_qs

import httpx
import pytest

from famli.services.twilio_client import (
    TwilioClient,
    TwilioError,
    WebhookParseError,
    build_twiml,
    compute_signature,
    empty_twiml,
    parse_webhook_form,
    validate_signature,
)

AUTH_TOKEN = "12345"
WEBHOOK_URL = "https://mycompany.com/myapp.php?foo=1&bar=2"
PARAMS = {
    "CallSid": "CA1234567890ABCDE",
    "Caller": "+12349013030",
    "Digits": "1234",
    "From": "+12349013030",
    "To": "+18005551212",
}


class TestSignature:

    def test_matches_manual_hmac(self):
        payload = WEBHOOK_URL + "CallSidCA1234567890ABCDECaller+12349013030Digits1234From+12349013030To+18005551212"
        expected = base64.b64encode(
            hmac.new(AUTH_TOKEN.encode(), payload.encode(), hashlib.sha1).digest()
        ).decode()

        assert compute_signature(AUTH_TOKEN, WEBHOOK_URL, PARAMS) == expected

    def test_validate(self):
        signature = compute_signature(AUTH_TOKEN, WEBHOOK_URL, PARAMS)

        assert validate_signature(AUTH_TOKEN, WEBHOOK_URL, PARAMS, signature)
        assert not validate_signature(AUTH_TOKEN, WEBHOOK_URL, {**PARAMS, "Digits": "9"}, signature)
        assert not validate_signature("outro-token", WEBHOOK_URL, PARAMS, signature)
        assert not validate_signature(AUTH_TOKEN, WEBHOOK_URL, PARAMS, None)
        assert not validate_signature("", WEBHOOK_URL, PARAMS, signature)

    def test_non_ascii_signature_is_a_mismatch(self):
        assert not validate_signature(AUTH_TOKEN, WEBHOOK_URL, PARAMS, "assinaturaé")


class TestParseWebhookForm:

    def test_text_message(self):
        message = parse_webhook_form({
            "MessageSid": "SM1",
            "From": "whatsapp:+5511999999999",
            "To": "whatsapp:+14155238886",
            "Body": "Olá",
            "NumMedia": "0",
            "ProfileName": "Maria",
        })

        assert message.message_sid == "SM1"
        assert message.from_number == "whatsapp:+5511999999999"
        assert message.body == "Olá"
        assert message.num_media == 0
        assert message.media_url is None
        assert message.profile_name == "Maria"

    def test_media_only_first_attachment(self):
        message = parse_webhook_form({
            "From": "whatsapp:+5511999999999",
            "NumMedia": "2",
            "MediaUrl0": "https://api.twilio.com/media/0",
            "MediaContentType0": "image/jpeg",
            "MediaUrl1": "https://api.twilio.com/media/1",
        })

        assert message.num_media == 2
        assert message.media_url == "https://api.twilio.com/media/0"
        assert message.media_content_type == "image/jpeg"

    def test_media_fields_ignored_without_num_media(self):
        message = parse_webhook_form({
            "From": "whatsapp:+5511999999999",
            "MediaUrl0": "https://api.twilio.com/media/0",
        })
        assert message.num_media == 0
        assert message.media_url is None

    def test_location(self):
        message = parse_webhook_form({
            "From": "whatsapp:+5511999999999",
            "Latitude": "-23.5505",
            "Longitude": "-46.6333",
        })
        assert message.latitude == "-23.5505"
        assert message.longitude == "-46.6333"

    def test_invalid_num_media(self):
        with pytest.raises(WebhookParseError):
            parse_webhook_form({"From": "whatsapp:+5511999999999", "NumMedia": "abc"})

    def test_missing_sender(self):
        with pytest.raises(WebhookParseError):
            parse_webhook_form({"Body": "Olá"})


class TestTwiml:

    def test_message_is_escaped(self):
        xml = build_twiml('Tom & Jerry <b>"oi"</b>')

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<Message>Tom &amp; Jerry &lt;b&gt;&quot;oi&quot;&lt;/b&gt;</Message>" in xml
        assert xml.endswith("</Response>")

    def test_empty_envelope(self):
        assert empty_twiml() == '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class TestSendMessage:

    def setup_method(self):
        self.requests = []

    def _client(self, status_code=201):
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code, json={"sid": "SM123"})

        return TwilioClient(
            account_sid="AC123",
            auth_token="token",
            from_number="whatsapp:+14155238886",
            base_url="https://api.twilio.test",
            transport=httpx.MockTransport(handler),
        )

    def test_posts_form_with_basic_auth(self):
        client = self._client()

        result = asyncio.run(client.send_message("+5511999999999", "Olá", media_url="https://famli.net/a.jpg"))

        assert result == {"sid": "SM123"}
        request = self.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.twilio.test/2010-04-01/Accounts/AC123/Messages.json"
        assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"AC123:token").decode()

        form = parse_qs(request.content.decode())
        assert form["To"] == ["whatsapp:+5511999999999"]
        assert form["From"] == ["whatsapp:+14155238886"]
        assert form["Body"] == ["Olá"]
        assert form["MediaUrl"] == ["https://famli.net/a.jpg"]

    def test_prefix_not_duplicated(self):
        client = self._client()
        asyncio.run(client.send_message("whatsapp:+5511999999999", "Olá"))

        form = parse_qs(self.requests[0].content.decode())
        assert form["To"] == ["whatsapp:+5511999999999"]
        assert "MediaUrl" not in form

    def test_error_status_raises(self):
        client = self._client(status_code=400)

        with pytest.raises(TwilioError) as exc_info:
            asyncio.run(client.send_message("+5511999999999", "Olá"))

        assert exc_info.value.status_code == 400

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = TwilioClient(
            account_sid="AC123",
            auth_token="token",
            from_number="whatsapp:+14155238886",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(TwilioError) as exc_info:
            asyncio.run(client.send_message("+5511999999999", "Olá"))

        assert exc_info.value.status_code is None
