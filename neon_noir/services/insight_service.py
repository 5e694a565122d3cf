"""
洞察服务端口

天气查询与娱乐场荷官文案. GeminiInsightService通过aiohttp调用
Google Generative Language REST接口，配额错误时指数退避重试，
失败时回退到本地模拟天气或固定文案.
"""

import asyncio
import json
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

import aiohttp
from pydantic import Field, ValidationError
from pydantic.dataclasses import dataclass as pydantic_dataclass

from ..application.config_service import InsightConfig
from ..core.exceptions import NeonNoirError
from ..core.rng import RandomSource, create_rng

__all__ = [
    'WeatherSnapshot',
    'InsightKind',
    'InsightContext',
    'InsightService',
    'InsightServiceError',
    'QuotaExhaustedError',
    'GeminiInsightService',
    'FORTUNE_FALLBACK',
    'FORTUNE_EMPTY_FALLBACK',
    'ADVISORY_FALLBACK',
    'ADVISORY_EMPTY_FALLBACK',
]

logger = logging.getLogger(__name__)

FORTUNE_EMPTY_FALLBACK = "The dice are rolling, friend."
FORTUNE_FALLBACK = "The neon flickers. The house always has a seat for you."
ADVISORY_EMPTY_FALLBACK = "Atmospheric conditions remain stable."
ADVISORY_FALLBACK = "Local pressure is nominal. Satellite systems operating in low-bandwidth mode."
SIMULATED_WEATHER_DESCRIPTION = (
    "Atmospheric synchronization in progress. "
    "Local sensors providing estimated readings due to high uplink traffic."
)
SIMULATED_CONDITIONS = ("Sunny", "Partly Cloudy", "Clear Skies", "Light Breeze")
DEALER_PERSONA = "You are 'Neon Nick', a charismatic AI Casino Dealer in a high-end synthwave lounge. Max 15 words."


class InsightServiceError(NeonNoirError):
    """洞察服务请求失败"""

    def __init__(self, message: str, error_code: str = "INSIGHT_SERVICE_FAILED"):
        super().__init__(message, error_code)


class QuotaExhaustedError(InsightServiceError):
    """配额耗尽（HTTP 429 / RESOURCE_EXHAUSTED）"""

    def __init__(self, message: str):
        super().__init__(message, "QUOTA_EXHAUSTED")


@pydantic_dataclass(frozen=True)
class WeatherSnapshot:
    """天气快照"""
    city: str = Field(..., min_length=1, description="城市")
    temp: float = Field(..., description="温度（摄氏度）")
    condition: str = Field(..., description="天气状况")
    humidity: str = Field(..., description="湿度，如 '52%'")
    wind_speed: str = Field(..., description="风速，如 '12 km/h'")
    description: str = Field("", description="描述")
    is_simulated: bool = Field(False, description="是否为本地模拟数据")


class InsightKind(Enum):
    """洞察文案种类"""
    CASINO_FORTUNE = "casino_fortune"
    WEATHER_ADVISORY = "weather_advisory"


@pydantic_dataclass(frozen=True)
class InsightContext:
    """洞察请求上下文"""
    kind: InsightKind
    balance: int = Field(0, ge=0, description="当前余额")
    win: int = Field(0, ge=0, description="本次赢得金额")
    city: str = Field("", description="城市")
    condition: str = Field("", description="天气状况")
    temp: float = Field(0.0, description="温度")

    @classmethod
    def casino_fortune(cls, balance: int, win: int = 0) -> 'InsightContext':
        return cls(kind=InsightKind.CASINO_FORTUNE, balance=balance, win=win)

    @classmethod
    def weather_advisory(cls, city: str, condition: str, temp: float) -> 'InsightContext':
        return cls(kind=InsightKind.WEATHER_ADVISORY, city=city, condition=condition, temp=temp)


class InsightService(Protocol):
    """洞察服务协议"""

    async def fetch_weather(self, city: str) -> WeatherSnapshot:
        """查询天气；任何失败都返回模拟快照，永不抛出"""
        ...

    async def fetch_insight(self, context: InsightContext) -> str:
        """生成短文案，永不抛出"""
        ...


class GeminiInsightService:
    """
    基于Gemini REST接口的洞察服务

    Attributes:
        config: 洞察服务配置
    """

    def __init__(self, config: Optional[InsightConfig] = None,
                 rng: Optional[RandomSource] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            config: 洞察服务配置，为None时使用默认配置
            rng: 生成模拟天气用的随机源
            sleep: 退避等待函数（测试中可替换）
            clock: 缓存计时用的时钟
        """
        self.config = config or InsightConfig()
        self._rng = rng or create_rng()
        self._sleep = sleep
        self._clock = clock
        self._weather_cache: Dict[str, Tuple[float, WeatherSnapshot]] = {}

    @property
    def is_online(self) -> bool:
        return bool(self.config.enabled and self.config.api_key)

    # ── 天气 ──────────────────────────────────────────────────

    async def fetch_weather(self, city: str) -> WeatherSnapshot:
        """
        查询城市天气

        Args:
            city: 城市名

        Returns:
            WeatherSnapshot: 天气快照（离线、配额耗尽、请求失败或响应无法解析时is_simulated=True）
        """
        cached = self._get_cached(city)
        if cached is not None:
            logger.debug(f"[洞察] 天气缓存命中: {city}")
            return cached

        if not self.is_online:
            return self.simulate_weather(city)

        prompt = (
            f"What is the current weather in {city}? Provide temperature in Celsius, a short condition, "
            f"humidity percentage, and wind speed. Return as JSON with keys "
            f"city, temp, condition, humidity, windSpeed, description."
        )
        try:
            text = await self._generate_text(prompt, tools=[{"google_search": {}}])
            snapshot = self._parse_weather(text)
        except QuotaExhaustedError:
            logger.warning(f"[洞察] 天气查询配额耗尽，使用模拟数据: {city}")
            return self.simulate_weather(city)
        except InsightServiceError as e:
            logger.warning(f"[洞察] 天气查询失败，使用模拟数据: {city}: {e.message}")
            return self.simulate_weather(city)

        self._weather_cache[city.lower()] = (self._clock(), snapshot)
        return snapshot

    def simulate_weather(self, city: str) -> WeatherSnapshot:
        """生成一个合理的本地模拟天气快照"""
        return WeatherSnapshot(
            city=city[:1].upper() + city[1:],
            temp=float(self._rng.randrange(15, 30)),
            condition=SIMULATED_CONDITIONS[self._rng.randrange(len(SIMULATED_CONDITIONS))],
            humidity=f"{self._rng.randrange(40, 60)}%",
            wind_speed=f"{self._rng.randrange(5, 20)} km/h",
            description=SIMULATED_WEATHER_DESCRIPTION,
            is_simulated=True,
        )

    def _get_cached(self, city: str) -> Optional[WeatherSnapshot]:
        entry = self._weather_cache.get(city.lower())
        if entry is None:
            return None
        stored_at, snapshot = entry
        if self._clock() - stored_at < self.config.cache_ttl_seconds:
            return snapshot
        del self._weather_cache[city.lower()]
        return None

    @staticmethod
    def _parse_weather(text: str) -> WeatherSnapshot:
        cleaned = text.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.strip("`")
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:]
        try:
            raw = json.loads(cleaned)
            return WeatherSnapshot(
                city=raw["city"],
                temp=raw["temp"],
                condition=raw["condition"],
                humidity=str(raw["humidity"]),
                wind_speed=str(raw.get("windSpeed", raw.get("wind_speed", ""))),
                description=raw.get("description", ""),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            raise InsightServiceError(f"无法解析天气响应: {e}") from e

    # ── 文案 ──────────────────────────────────────────────────

    async def fetch_insight(self, context: InsightContext) -> str:
        """
        生成洞察文案，任何失败都回退到固定文案

        Args:
            context: 请求上下文

        Returns:
            str: 文案
        """
        if context.kind == InsightKind.CASINO_FORTUNE:
            if context.win > 0:
                prompt = (f"A player just won {context.win} coins! Total balance: {context.balance}. "
                          f"Give a short, witty, neon-noir dealer shoutout.")
            else:
                prompt = f"Player balance: {context.balance}. Give a cool, encouraging gambling tip."
            request = dict(system_instruction=DEALER_PERSONA)
            empty_fallback, error_fallback = FORTUNE_EMPTY_FALLBACK, FORTUNE_FALLBACK
        else:
            prompt = (f"Provide a short, professional 2-sentence weather advisory for {context.city} "
                      f"where it is {context.condition} and {context.temp}°C.")
            request = dict(temperature=0.7)
            empty_fallback, error_fallback = ADVISORY_EMPTY_FALLBACK, ADVISORY_FALLBACK

        if not self.is_online:
            return error_fallback

        try:
            text = await self._generate_text(prompt, **request)
        except Exception as e:
            logger.warning(f"[洞察] {context.kind.value} 请求失败，使用固定文案: {e}")
            return error_fallback
        return text.strip() or empty_fallback

    # ── 传输 ──────────────────────────────────────────────────

    async def _generate_text(self, prompt: str, system_instruction: Optional[str] = None,
                             temperature: Optional[float] = None,
                             tools: Optional[list] = None) -> str:
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if temperature is not None:
            payload["generationConfig"] = {"temperature": temperature}
        if tools:
            payload["tools"] = tools

        response = await self._with_retry(lambda: self._post_generate(payload))
        return self._extract_text(response)

    async def _with_retry(self, fn: Callable[[], Awaitable[Dict[str, Any]]]) -> Dict[str, Any]:
        """只对配额错误做指数退避重试"""
        delay = self.config.base_backoff_seconds
        retries = self.config.max_retries
        while True:
            try:
                return await fn()
            except QuotaExhaustedError:
                if retries <= 0:
                    raise
                logger.info(f"[洞察] 配额受限，{delay:.1f}秒后重试（剩余 {retries} 次）")
                await self._sleep(delay)
                retries -= 1
                delay *= 2

    async def _post_generate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        调用generateContent接口

        Raises:
            QuotaExhaustedError: HTTP 429或RESOURCE_EXHAUSTED
            InsightServiceError: 其它网络或HTTP错误
        """
        url = f"{self.config.endpoint}/{self.config.model}:generateContent"
        headers = {"x-goog-api-key": self.config.api_key or "", "Content-Type": "application/json"}
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as s:
                async with s.post(url, json=payload, headers=headers) as r:
                    body = await r.text()
                    if r.status == 429 or "RESOURCE_EXHAUSTED" in body:
                        raise QuotaExhaustedError(f"HTTP {r.status}: RESOURCE_EXHAUSTED")
                    if r.status != 200:
                        raise InsightServiceError(f"HTTP {r.status}: {body[:200]}")
                    return json.loads(body)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise InsightServiceError(f"Gemini请求失败: {e}") from e

    @staticmethod
    def _extract_text(response: Dict[str, Any]) -> str:
        candidates = response.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
