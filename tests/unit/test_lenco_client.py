import asyncio
import json
import re
import httpx
import pytest
from storefront.payments import lenco_client as lenco
from storefront.payments.lenco_client import GatewayFallbackPolicy, LencoClient

URL = "https://project.supabase.co/functions/v1/lenco-payment-handler"

def _client(handler, fallback=GatewayFallbackPolicy.MOCK_SUCCESS, url=URL):
    return LencoClient(url=url, api_key="anon", currency="ZMW", timeout=1,
                       fallback=fallback, transport=httpx.MockTransport(handler))

def _pay(client, amount=215.0, phone="0971234567", reference="pabondi-store-aa-1-ab12"):
    return asyncio.run(client.initiate_payment(phone, amount, reference))

@pytest.mark.parametrize("phone,operator", [
    ("0771234567", "airtel"),
    ("771234567", "airtel"),
    ("0761234567", "airtel"),
    ("0751234567", "airtel"),
    ("+260761234567", "airtel"),
    ("+260 77 123 4567", "airtel"),
    ("0971234567", "mtn"),
    ("0571234567", "mtn"),
    ("0961234567", "mtn"),
    ("", "mtn"),
])
def test_detect_operator(phone, operator):
    assert lenco.detect_operator(phone) == operator

def test_payment_reference_format():
    ref = lenco.make_payment_reference("store-aa-1234-uuid")
    assert re.fullmatch(r"pabondi-store-aa-\d{13}-[0-9a-f]{4}", ref)
    assert ref != lenco.make_payment_reference("store-aa-1234-uuid")

def test_success_uses_provider_id_and_sends_payload():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"success": True, "data": {"id": "LNC-9"}})

    result = _pay(_client(handler))
    assert result.success is True
    assert result.transaction_id == "LNC-9"
    assert result.mocked is False
    assert seen["body"] == {
        "amount": 215,
        "currency": "ZMW",
        "reference": "pabondi-store-aa-1-ab12",
        "phone": "0971234567",
        "operator": "mtn",
    }
    assert seen["auth"] == "Bearer anon"

def test_success_without_id_falls_back_to_reference():
    handler = lambda request: httpx.Response(200, json={"success": True, "data": {}})
    result = _pay(_client(handler), reference="R1")
    assert result.transaction_id == "LENCO-REF-R1"

def test_explicit_decline_is_a_failure():
    handler = lambda request: httpx.Response(400, json={"success": False, "message": "Insufficient balance"})
    result = _pay(_client(handler))
    assert result.success is False
    assert result.message == "Insufficient balance"

def test_non_json_body_follows_fallback_policy():
    # Page d'erreur HTML renvoyée par un proxy: passerelle indisponible, pas un refus
    handler = lambda request: httpx.Response(502, content=b"<html>Bad Gateway</html>")
    result = _pay(_client(handler))
    assert result.success is True and result.mocked is True
    assert result.transaction_id.startswith("MOCKED-OFFLINE-")

    failed = _pay(_client(handler, fallback=GatewayFallbackPolicy.FAIL))
    assert failed.success is False
    assert failed.message == "Service de paiement indisponible."

@pytest.mark.parametrize("total,charged", [
    (214.5, 215),
    (216.5, 217),
    (215.0, 215),
    (215.49, 215),
    (0.5, 1),
])
def test_amount_rounded_half_up(total, charged):
    client = _client(lambda request: pytest.fail("no HTTP call expected"))
    assert client.build_payload("0961234567", total, "R1")["amount"] == charged

def test_half_unit_total_sent_rounded_up():
    seen = {}

    def handler(request):
        seen["amount"] = json.loads(request.content)["amount"]
        return httpx.Response(200, json={"success": True, "data": {"id": "LNC-1"}})

    _pay(_client(handler), amount=214.5)
    assert seen["amount"] == 215

def test_missing_function_is_mocked():
    handler = lambda request: httpx.Response(404, json={"error": "not found"})
    result = _pay(_client(handler))
    assert result.success is True and result.mocked is True
    assert result.transaction_id.startswith("MOCKED-LENCO-")

def test_network_error_is_mocked_offline():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    result = _pay(_client(handler))
    assert result.success is True
    assert result.transaction_id.startswith("MOCKED-OFFLINE-")

def test_timeout_with_fail_policy():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = _pay(_client(handler, fallback=GatewayFallbackPolicy.FAIL))
    assert result.success is False
    assert result.message == "Service de paiement indisponible."

def test_unconfigured_gateway_follows_policy():
    handler = lambda request: pytest.fail("no HTTP call expected")
    assert _pay(_client(handler, url="")).mocked is True
    assert _pay(_client(handler, url="", fallback=GatewayFallbackPolicy.FAIL)).success is False

def test_fallback_policy_from_value():
    assert GatewayFallbackPolicy.from_value("FAIL") is GatewayFallbackPolicy.FAIL
    assert GatewayFallbackPolicy.from_value("whatever") is GatewayFallbackPolicy.MOCK_SUCCESS
    assert GatewayFallbackPolicy.from_value(None) is GatewayFallbackPolicy.MOCK_SUCCESS
