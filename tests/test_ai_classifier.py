"""Tests for the external classifier HTTP client."""

import json
from datetime import datetime

import httpx
import pytest

from chobo.clients.ai_classifier import AIClassifierClient, AIClassifierError
from chobo.domain.entities import Account, AccountType

ACCOUNTS = [
    Account(1, "1110", "現金", AccountType.ASSET, True, datetime.now()),
    Account(2, "7140", "通信費", AccountType.EXPENSE, True, datetime.now()),
]


def _client(handler, api_key=None):
    return AIClassifierClient(
        "https://classifier.test/v1/classify",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


def test_classify_sends_accounts_and_parses_answer():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "debit_account_code": "7140",
                "credit_account_code": "1110",
                "confidence": 0.92,
                "reason": "mobile carrier",
            },
        )

    answer = _client(handler, api_key="secret").classify("NTT docomo", ACCOUNTS)

    assert answer.debit_account_code == "7140"
    assert answer.credit_account_code == "1110"
    assert answer.confidence == pytest.approx(0.92)
    assert answer.reason == "mobile carrier"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["description"] == "NTT docomo"
    assert seen["body"]["accounts"][1] == {"code": "7140", "name": "通信費", "account_type": "expense"}


def test_no_auth_header_without_key():
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"debit_account_code": "7140", "credit_account_code": "1110", "confidence": 1})

    assert _client(handler).classify("x", ACCOUNTS).reason == ""


@pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), ("0.5", 0.5)])
def test_confidence_is_clamped(raw, expected):
    def handler(request):
        return httpx.Response(200, json={"debit_account_code": "7140", "credit_account_code": "1110", "confidence": raw})

    assert _client(handler).classify("x", ACCOUNTS).confidence == expected


@pytest.mark.parametrize(
    "body",
    [
        {"debit_account_code": "7140", "confidence": 0.9},
        {"debit_account_code": "7140", "credit_account_code": "1110", "confidence": "high"},
        {"debit_account_code": "7140", "credit_account_code": "1110", "confidence": "nan"},
        ["not", "an", "object"],
    ],
)
def test_invalid_response_raises(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(AIClassifierError, match="Invalid classifier response"):
        _client(handler).classify("x", ACCOUNTS)


def test_non_json_body_raises():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(AIClassifierError, match="Invalid classifier response"):
        _client(handler).classify("x", ACCOUNTS)


def test_http_error_status():
    def handler(request):
        return httpx.Response(503, json={"error": "busy"})

    with pytest.raises(AIClassifierError, match="503"):
        _client(handler).classify("x", ACCOUNTS)


def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(AIClassifierError, match="timeout"):
        _client(handler).classify("x", ACCOUNTS)


def test_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AIClassifierError, match="unreachable"):
        _client(handler).classify("x", ACCOUNTS)
