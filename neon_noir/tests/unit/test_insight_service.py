"""
Insight Service Unit Tests

测试天气查询、荷官文案、配额退避重试、缓存和离线回退.
网络调用通过覆盖_post_generate替换为脚本化响应.
"""

import asyncio
import json

import pytest
from pydantic import ValidationError

from neon_noir.application.config_service import InsightConfig
from neon_noir.core.rng import create_rng
from neon_noir.services.insight_service import (
    ADVISORY_EMPTY_FALLBACK,
    ADVISORY_FALLBACK,
    FORTUNE_EMPTY_FALLBACK,
    FORTUNE_FALLBACK,
    GeminiInsightService,
    InsightContext,
    InsightServiceError,
    QuotaExhaustedError,
    SIMULATED_CONDITIONS,
)


def text_response(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class ScriptedInsightService(GeminiInsightService):
    """按顺序返回预设响应的洞察服务"""

    def __init__(self, responses, **kwargs):
        super().__init__(**kwargs)
        self.responses = list(responses)
        self.payloads = []

    async def _post_generate(self, payload):
        self.payloads.append(payload)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def online_service(responses, max_retries=2, clock=None):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    service = ScriptedInsightService(
        responses,
        config=InsightConfig(api_key="test-key", max_retries=max_retries, base_backoff_seconds=1.0),
        rng=create_rng(3),
        sleep=fake_sleep,
        clock=clock or FakeClock(),
    )
    return service, delays


WEATHER_JSON = json.dumps({
    "city": "Tokyo",
    "temp": 21.5,
    "condition": "Rain",
    "humidity": "80%",
    "windSpeed": "12 km/h",
    "description": "Wet streets, bright signs.",
})


class TestOfflineFallbacks:
    """测试离线回退"""

    def test_fortune_and_advisory(self, offline_insight):
        assert not offline_insight.is_online
        fortune = asyncio.run(offline_insight.fetch_insight(InsightContext.casino_fortune(1000, 50)))
        advisory = asyncio.run(offline_insight.fetch_insight(
            InsightContext.weather_advisory("Tokyo", "Rain", 20.0)
        ))
        assert fortune == FORTUNE_FALLBACK
        assert advisory == ADVISORY_FALLBACK

    def test_simulated_weather(self, offline_insight):
        snapshot = asyncio.run(offline_insight.fetch_weather("tokyo"))
        assert snapshot.is_simulated
        assert snapshot.city == "Tokyo"
        assert 15 <= snapshot.temp < 30
        assert snapshot.condition in SIMULATED_CONDITIONS
        assert snapshot.humidity.endswith("%")


class TestInsightText:
    """测试文案生成"""

    def test_fortune_prompt_and_persona(self):
        service, _ = online_service([text_response("  Jackpot energy tonight.  ")])
        text = asyncio.run(service.fetch_insight(InsightContext.casino_fortune(balance=1500, win=500)))
        assert text == "Jackpot energy tonight."
        payload = service.payloads[0]
        assert "won 500 coins" in payload["contents"][0]["parts"][0]["text"]
        assert "systemInstruction" in payload

    def test_advisory_temperature(self):
        service, _ = online_service([text_response("Carry an umbrella.")])
        asyncio.run(service.fetch_insight(InsightContext.weather_advisory("Oslo", "Snow", -3.0)))
        assert service.payloads[0]["generationConfig"] == {"temperature": 0.7}

    def test_empty_text_fallbacks(self):
        service, _ = online_service([text_response(""), {"candidates": []}])
        assert asyncio.run(service.fetch_insight(InsightContext.casino_fortune(10))) == FORTUNE_EMPTY_FALLBACK
        advisory = asyncio.run(service.fetch_insight(InsightContext.weather_advisory("Oslo", "Snow", 1.0)))
        assert advisory == ADVISORY_EMPTY_FALLBACK

    def test_error_fallback(self):
        service, delays = online_service([InsightServiceError("HTTP 500")])
        assert asyncio.run(service.fetch_insight(InsightContext.casino_fortune(10))) == FORTUNE_FALLBACK
        assert delays == []

    def test_context_validation(self):
        with pytest.raises(ValidationError):
            InsightContext.casino_fortune(balance=-1)


class TestRetry:
    """测试配额退避重试"""

    def test_retries_quota_with_doubling_delay(self):
        service, delays = online_service([
            QuotaExhaustedError("429"),
            QuotaExhaustedError("429"),
            text_response("Third time lucky."),
        ])
        text = asyncio.run(service.fetch_insight(InsightContext.casino_fortune(100)))
        assert text == "Third time lucky."
        assert delays == [1.0, 2.0]

    def test_retries_exhausted(self):
        service, delays = online_service([QuotaExhaustedError("429")] * 3)
        text = asyncio.run(service.fetch_insight(InsightContext.casino_fortune(100)))
        assert text == FORTUNE_FALLBACK
        assert delays == [1.0, 2.0]
        assert len(service.payloads) == 3


class TestWeather:
    """测试天气查询"""

    def test_parse_fenced_json(self):
        service, _ = online_service([text_response(f"```json\n{WEATHER_JSON}\n```")])
        snapshot = asyncio.run(service.fetch_weather("Tokyo"))
        assert not snapshot.is_simulated
        assert snapshot.temp == 21.5
        assert snapshot.wind_speed == "12 km/h"
        assert service.payloads[0]["tools"] == [{"google_search": {}}]

    def test_cache_ttl(self):
        clock = FakeClock()
        service, _ = online_service([text_response(WEATHER_JSON), text_response(WEATHER_JSON)], clock=clock)
        asyncio.run(service.fetch_weather("Tokyo"))
        clock.now += 60
        asyncio.run(service.fetch_weather("tokyo"))
        assert len(service.payloads) == 1

        clock.now += service.config.cache_ttl_seconds
        asyncio.run(service.fetch_weather("Tokyo"))
        assert len(service.payloads) == 2

    def test_quota_falls_back_to_simulation(self):
        service, _ = online_service([QuotaExhaustedError("429")], max_retries=0)
        snapshot = asyncio.run(service.fetch_weather("Lima"))
        assert snapshot.is_simulated
        assert snapshot.city == "Lima"

    def test_http_failure_falls_back_to_simulation(self, caplog):
        service, delays = online_service([InsightServiceError("HTTP 503")])
        with caplog.at_level("WARNING", logger="neon_noir.services.insight_service"):
            snapshot = asyncio.run(service.fetch_weather("Lima"))
        assert snapshot.is_simulated
        assert snapshot.city == "Lima"
        assert delays == []
        assert "HTTP 503" in caplog.text

    def test_unparseable_response_falls_back_to_simulation(self):
        service, _ = online_service([text_response("sunny and warm"), text_response(WEATHER_JSON)])
        snapshot = asyncio.run(service.fetch_weather("Lima"))
        assert snapshot.is_simulated
        # 模拟快照不进入缓存，下次查询重新请求
        retry = asyncio.run(service.fetch_weather("Lima"))
        assert not retry.is_simulated
        assert len(service.payloads) == 2
