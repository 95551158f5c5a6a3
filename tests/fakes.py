"""In-process stand-ins for aiohttp sessions and the remote clients"""
from contextlib import asynccontextmanager

import aiohttp

from clients.risk_api import RiskAssessment
from core.errors import RemoteRequestError


class FakeResponse:
    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self._body = body
        self._error = error

    async def json(self, content_type=None):
        if self._error:
            raise self._error
        return self._body


class FakeSession:
    """
    Replays queued responses. A queued exception is raised when the request
    is made, as aiohttp does for connection errors.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    @asynccontextmanager
    async def _respond(self, response):
        yield response

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return self._respond(response)

    async def close(self):
        self.closed = True


def connection_error():
    return aiohttp.ClientConnectionError("connection reset")


class FakeMorpho:
    def __init__(self, vaults=None, markets=None, failing=(), bulk_error=False):
        self.vaults = vaults or {}
        self.markets = markets or {}
        self.failing = set(failing)
        self.bulk_error = bulk_error
        self.calls = []
        self.closed = False

    async def vault_by_address(self, address, chain_id):
        self.calls.append(("vault", address, chain_id))
        if address in self.failing:
            raise RemoteRequestError("HTTP 500")
        return self.vaults.get((chain_id, address))

    async def market_by_unique_key(self, unique_key, chain_id):
        self.calls.append(("market", unique_key, chain_id))
        if unique_key in self.failing:
            raise RemoteRequestError("HTTP 500")
        return self.markets.get((chain_id, unique_key))

    async def markets_by_chain(self, chain_id):
        self.calls.append(("markets", chain_id))
        if self.bulk_error:
            raise RemoteRequestError("query too complex")
        return {key: market for (chain, key), market in self.markets.items() if chain == chain_id}

    async def close(self):
        self.closed = True


class FakeRisk:
    def __init__(self, assessments=None, failing=()):
        self.assessments = assessments or {}
        self.failing = set(failing)
        self.calls = []
        self.closed = False

    async def assess(self, address):
        self.calls.append(address)
        if address in self.failing:
            raise RemoteRequestError("HTTP 429")
        risk, status = self.assessments.get(address, ("Low", "COMPLETE"))
        return RiskAssessment(address=address, risk=risk, risk_reason=None, status=status)

    async def close(self):
        self.closed = True


class FakeOnchain:
    def __init__(self, configured=(1,), decimals=None, roles=None):
        self.configured = set(configured)
        self.decimals = decimals or {}
        self.roles = roles or {}
        self.closed = False

    def is_configured(self, chain_id):
        return chain_id in self.configured

    async def feed_decimals(self, chain_id, addresses):
        return {address: self.decimals.get(address) for address in addresses}

    async def vault_roles(self, chain_id, addresses):
        return {address: self.roles[address] for address in addresses}

    async def close(self):
        self.closed = True


class FakeSecrets:
    def __init__(self, token="token", skip=()):
        self.token = token
        self.skip = set(skip)

    def get_risk_api_token(self):
        return self.token

    def skip_vaults_api(self):
        return "vaults" in self.skip

    def skip_markets_api(self):
        return "markets" in self.skip

    def skip_risk_checks(self):
        return "risk" in self.skip

    def skip_onchain_checks(self):
        return "onchain" in self.skip
