# ─────────────────────────────────────────────────────────────────────────────
# Tests — Together image client, provider routing, error classification
# ─────────────────────────────────────────────────────────────────────────────

import json

import httpx
import pytest
from pydantic import SecretStr

from app.config import Settings
from app.services.image_client import (
    CFG_SCALE,
    GENERATION_MODEL,
    NEGATIVE_PROMPT,
    AccountBlocked,
    ImageGenerated,
    InvalidAPIKey,
    ProviderFailure,
    ProviderRoute,
    TogetherImageClient,
    classify_error,
    select_provider_route,
)


def _settings(**overrides) -> Settings:
    fields = {
        "_env_file": None,
        "together_api_key": SecretStr("service-key"),
        "helicone_api_key": SecretStr(""),
    }
    fields.update(overrides)
    return Settings(**fields)


class TestSelectProviderRoute:
    def test_service_key_without_byok(self):
        route = select_provider_route(_settings(), None)
        assert route.api_key == "service-key"
        assert route.byok is False
        assert route.base_url == "https://api.together.xyz/v1"
        assert route.headers == {}

    def test_caller_key_overrides_service_key(self):
        route = select_provider_route(_settings(), "caller-key")
        assert route.api_key == "caller-key"
        assert route.byok is True

    def test_empty_caller_key_is_not_byok(self):
        route = select_provider_route(_settings(), "")
        assert route.api_key == "service-key"
        assert route.byok is False

    def test_helicone_routing_and_tagging(self):
        route = select_provider_route(
            _settings(helicone_api_key=SecretStr("hel-key")), "caller-key"
        )
        assert route.base_url == "https://together.helicone.ai/v1"
        assert route.headers == {
            "Helicone-Auth": "Bearer hel-key",
            "Helicone-Property-LOGOBYOK": "true",
        }

    def test_helicone_tag_false_without_byok(self):
        route = select_provider_route(_settings(helicone_api_key=SecretStr("hel-key")), None)
        assert route.headers["Helicone-Property-LOGOBYOK"] == "false"

    def test_caller_key_never_in_headers_or_repr(self):
        route = select_provider_route(
            _settings(helicone_api_key=SecretStr("hel-key")), "caller-secret"
        )
        assert all("caller-secret" not in v for v in route.headers.values())
        assert "caller-secret" not in repr(route)


class TestClassifyError:
    def test_invalid_api_key(self):
        body = {"error": {"code": "invalid_api_key", "message": "bad key", "type": "x"}}
        assert classify_error(401, body) == InvalidAPIKey("bad key")

    def test_request_blocked(self):
        body = {"error": {"type": "request_blocked", "message": "add billing"}}
        assert classify_error(403, body) == AccountBlocked("add billing")

    def test_message_text_is_not_inspected(self):
        body = {"error": {"message": "invalid_api_key request_blocked"}}
        assert isinstance(classify_error(400, body), ProviderFailure)

    @pytest.mark.parametrize(
        "body",
        [
            "upstream exploded",
            {"error": "rate limited"},
            {"detail": {"code": "invalid_api_key"}},
            {"error": {"code": "model_not_available"}},
        ],
    )
    def test_other_shapes_are_failures(self, body):
        result = classify_error(500, body)
        assert result == ProviderFailure(500, body)


def _client(handler, **kwargs) -> tuple[TogetherImageClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TogetherImageClient(http, **kwargs), http


ROUTE = ProviderRoute(base_url="https://api.together.test/v1", api_key="k-123")


class TestTogetherImageClient:
    @pytest.mark.asyncio
    async def test_success_returns_first_image(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"data": [{"b64_json": "AAAA"}, {"b64_json": "BBBB"}]}
            )

        client, http = _client(handler, seed_source=lambda: 42)
        async with http:
            result = await client.generate("a prompt", ROUTE)

        assert result == ImageGenerated({"b64_json": "AAAA"})
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.together.test/v1/images/generations"
        assert request.headers["authorization"] == "Bearer k-123"

    @pytest.mark.asyncio
    async def test_fixed_parameters(self):
        payloads: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            payloads.append(json.loads(request.content))
            return httpx.Response(200, json={"data": [{}]})

        client, http = _client(handler, seed_source=lambda: 7)
        async with http:
            await client.generate("the prompt", ROUTE)

        assert payloads[0] == {
            "prompt": "the prompt",
            "model": GENERATION_MODEL,
            "width": 768,
            "height": 768,
            "steps": 4,
            "negative_prompt": NEGATIVE_PROMPT,
            "response_format": "base64",
            "seed": 7,
            "cfg_scale": CFG_SCALE,
        }

    @pytest.mark.asyncio
    async def test_observability_headers_forwarded(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [{}]})

        route = ProviderRoute(
            base_url="https://proxy.test/v1/",
            api_key="k",
            headers={"Helicone-Auth": "Bearer h", "Helicone-Property-LOGOBYOK": "false"},
        )
        client, http = _client(handler)
        async with http:
            await client.generate("p", route)

        assert str(seen[0].url) == "https://proxy.test/v1/images/generations"
        assert seen[0].headers["helicone-auth"] == "Bearer h"
        assert seen[0].headers["helicone-property-logobyok"] == "false"

    @pytest.mark.asyncio
    async def test_seed_varies_between_calls(self):
        seeds: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seeds.append(json.loads(request.content)["seed"])
            return httpx.Response(200, json={"data": [{}]})

        client, http = _client(handler)
        async with http:
            for _ in range(5):
                await client.generate("same prompt", ROUTE)

        assert all(0 <= s < 1_000_000 for s in seeds)
        assert len(set(seeds)) > 1

    @pytest.mark.asyncio
    async def test_invalid_key_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                401, json={"error": {"code": "invalid_api_key", "message": "nope"}}
            )

        client, http = _client(handler)
        async with http:
            assert isinstance(await client.generate("p", ROUTE), InvalidAPIKey)

    @pytest.mark.asyncio
    async def test_blocked_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": {"type": "request_blocked"}})

        client, http = _client(handler)
        async with http:
            assert isinstance(await client.generate("p", ROUTE), AccountBlocked)

    @pytest.mark.asyncio
    async def test_non_json_error_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        client, http = _client(handler)
        async with http:
            result = await client.generate("p", ROUTE)

        assert result == ProviderFailure(502, "Bad Gateway")

    @pytest.mark.asyncio
    async def test_transport_errors_raise(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, http = _client(handler)
        async with http:
            with pytest.raises(httpx.ConnectError):
                await client.generate("p", ROUTE)
