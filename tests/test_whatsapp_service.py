import pytest
import requests

from app.services.auth.whatsapp_service import MetaWhatsAppSender, WhatsAppSender, WhatsAppTemplateSender
from tests.fakes import FakeResponse


def capture_post(monkeypatch, response):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None, **kwargs):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


def test_template_sender_payload(monkeypatch):
    calls = capture_post(monkeypatch, FakeResponse(200, {"success": True}))
    sender = WhatsAppTemplateSender(api_url="https://wa.test/process", timeout=3)

    result = sender.deliver("9876543210", "4821")

    assert result.ok is True
    assert calls[0]["url"] == "https://wa.test/process"
    assert calls[0]["json"] == {"receiver": "+919876543210", "values": {"1": "4821"}}
    assert calls[0]["timeout"] == 3


def test_template_sender_accepts_success_flag_on_2xx(monkeypatch):
    capture_post(monkeypatch, FakeResponse(202, {"success": True}))
    assert WhatsAppTemplateSender(api_url="https://wa.test").deliver("9876543210", "4821").ok is True


def test_template_sender_rejection(monkeypatch):
    capture_post(monkeypatch, FakeResponse(400, {"success": False, "message": "bad receiver"}))

    result = WhatsAppTemplateSender(api_url="https://wa.test").deliver("9876543210", "4821")

    assert result.ok is False
    assert result.error_detail == "bad receiver"
    assert result.unreachable is False


def test_template_sender_connection_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.exceptions.ConnectionError("down")

    monkeypatch.setattr(requests, "post", boom)

    result = WhatsAppTemplateSender(api_url="https://wa.test").deliver("9876543210", "4821")
    assert result.ok is False
    assert result.unreachable is True


def test_meta_sender_payload_and_api_key(monkeypatch):
    calls = capture_post(
        monkeypatch,
        FakeResponse(200, {"messages": [{"id": "wamid.1", "message_status": "accepted"}]}),
    )
    sender = MetaWhatsAppSender(api_url="https://meta.test/messages", api_key="k3y", template_name="otp_template1")

    result = sender.deliver("9876543210", "4821")

    assert result.ok is True
    call = calls[0]
    assert call["headers"]["apikey"] == "k3y"
    payload = call["json"]
    assert payload["to"] == "9876543210"
    assert payload["type"] == "template"
    assert payload["template"]["name"] == "otp_template1"
    body, button = payload["template"]["components"]
    assert body["parameters"] == [{"type": "text", "text": "4821"}]
    assert button["sub_type"] == "url"
    assert button["parameters"] == [{"type": "payload", "payload": "4821"}]


def test_meta_sender_accepted_status_on_non_200(monkeypatch):
    capture_post(monkeypatch, FakeResponse(201, {"messages": [{"message_status": "accepted"}]}))
    sender = MetaWhatsAppSender(api_url="https://meta.test", api_key="k")
    assert sender.deliver("9876543210", "4821").ok is True


def test_meta_sender_server_error_is_unreachable(monkeypatch):
    capture_post(monkeypatch, FakeResponse(503, None, text="unavailable"))
    sender = MetaWhatsAppSender(api_url="https://meta.test", api_key="k")

    result = sender.deliver("9876543210", "4821")
    assert result.ok is False
    assert result.unreachable is True


def test_sender_without_url_does_not_call_out(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(requests, "post", fail)

    result = MetaWhatsAppSender(api_url="", api_key="k").deliver("9876543210", "4821")
    assert result.ok is False


def test_sender_base_requires_payload_builder():
    with pytest.raises(TypeError):
        WhatsAppSender(api_url="https://wa.test")
