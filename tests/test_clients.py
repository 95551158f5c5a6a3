import asyncio

import pytest

from clients.morpho_api import MorphoApiClient
from clients.risk_api import RiskApiClient
from core.errors import MissingCredentialError, RemoteRequestError
from utils.http_client import HttpClient
from utils.rate_limiter import TokenBucketRateLimiter

from factories import MARKET_A, MARKET_B, VAULT_A
from fakes import FakeResponse, FakeSession


def morpho(*responses):
    session = FakeSession(*responses)
    return MorphoApiClient(http=HttpClient(session=session, base_delay=0), url="https://morpho.test/graphql"), session


def risk(*responses, token="secret"):
    session = FakeSession(*responses)
    client = RiskApiClient(
        token=token,
        http=HttpClient(session=session, base_delay=0),
        url="https://risk.test/v2/",
        limiter=TokenBucketRateLimiter(rate=1000, burst=10),
    )
    return client, session


def test_vault_by_address():
    client, session = morpho(FakeResponse(body={"data": {"vaultByAddress": {"address": VAULT_A}}}))
    assert asyncio.run(client.vault_by_address(VAULT_A, 1)) == {"address": VAULT_A}
    assert session.requests[0][2]["json"]["variables"] == {"address": VAULT_A, "chainId": 1}


def test_missing_entity_is_none():
    client, _ = morpho(FakeResponse(body={"data": {"marketByUniqueKey": None}}))
    assert asyncio.run(client.market_by_unique_key(MARKET_A, 1)) is None


def test_graphql_errors_raise():
    client, _ = morpho(FakeResponse(body={"errors": [{"message": "No results matching given parameters"}]}))
    with pytest.raises(RemoteRequestError, match="No results matching"):
        asyncio.run(client.vault_by_address(VAULT_A, 1))


def test_markets_by_chain_accepts_paginated_shape():
    items = [{"uniqueKey": MARKET_A, "whitelisted": True}, {"uniqueKey": MARKET_B, "whitelisted": False}]
    client, _ = morpho(FakeResponse(body={"data": {"markets": {"items": items}}}))
    markets = asyncio.run(client.markets_by_chain(1))
    assert set(markets) == {MARKET_A, MARKET_B}
    assert markets[MARKET_B]["whitelisted"] is False


def test_risk_assessment():
    client, session = risk(FakeResponse(body={"address": VAULT_A, "risk": "Low", "riskReason": None, "status": "COMPLETE"}))
    assessment = asyncio.run(client.assess(VAULT_A))

    assert assessment.complete and assessment.acceptable
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", f"https://risk.test/v2/entities/{VAULT_A}")
    assert kwargs["headers"]["Token"] == "secret"


def test_high_risk_and_incomplete():
    client, _ = risk(
        FakeResponse(body={"risk": "Severe", "status": "COMPLETE", "riskReason": "sanctions"}),
        FakeResponse(body={"risk": "Low", "status": "IN_PROGRESS"}),
    )
    severe = asyncio.run(client.assess(VAULT_A))
    pending = asyncio.run(client.assess(VAULT_A))

    assert severe.complete and not severe.acceptable
    assert severe.risk_reason == "sanctions"
    assert not pending.complete


def test_malformed_risk_response():
    client, _ = risk(FakeResponse(body={"status": "COMPLETE"}))
    with pytest.raises(RemoteRequestError, match="Malformed risk response"):
        asyncio.run(client.assess(VAULT_A))


def test_missing_token(monkeypatch):
    monkeypatch.delenv("CHAINALYSIS_API_TOKEN", raising=False)
    client, session = risk(token=None)
    with pytest.raises(MissingCredentialError):
        asyncio.run(client.assess(VAULT_A))
    assert session.requests == []
