"""Alert formatting and Telegram delivery tests (MockTransport, no network)."""
from __future__ import annotations

import httpx
import pytest
from structlog.testing import capture_logs

from alerts import LoggingDispatcher, build_dispatcher
from alerts.base import format_alert_message
from alerts.telegram import TelegramConfig, TelegramDispatcher
from shared.config import Settings
from shared.models.domain import NO_MATCH_LINK, CorrelatedPair, NormalizedMatch
from shared.models.enums import ProviderName

TOKEN = "123456:SECRET-token"
CONFIG = TelegramConfig(bot_token=TOKEN, chat_id="-100200", api_base="https://tg.test")


def _pair(home: str = "Arsenal", away: str = "Chelsea", link: str | None = None) -> CorrelatedPair:
    signal = NormalizedMatch(
        provider=ProviderName.SOFASCORE,
        home_team=home,
        away_team=away,
        home_score=1,
        away_score=0,
        tournament="Premier League",
        match_link=link,
    )
    market = NormalizedMatch(
        provider=ProviderName.SPORTYBET,
        home_team=f"{home} FC",
        away_team=f"{away} FC",
        home_score=0,
        away_score=0,
        raw_score="0:0",
        market_open=True,
    )
    return CorrelatedPair(signal=signal, market=market)


class TestFormatAlertMessage:
    def test_with_link(self) -> None:
        link = "https://www.sofascore.com/arsenal-chelsea/RsUc#id:17"
        assert format_alert_message(_pair(link=link)) == (
            "GAME: Premier League\n"
            "TEAMS: Arsenal vs Chelsea\n"
            "Sofascore: 1 - 0\n"
            f"REVIEW: {link}"
        )

    def test_without_link_uses_placeholder(self) -> None:
        assert format_alert_message(_pair()).endswith(f"REVIEW: {NO_MATCH_LINK}")


class TestTelegramDispatcher:
    @pytest.mark.asyncio
    async def test_sends_one_message_per_pair(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            dispatcher = TelegramDispatcher(CONFIG, client=client)
            results = await dispatcher.dispatch([_pair(), _pair(home="Leeds", away="Everton")])

        assert [r.delivered for r in results] == [True, True]
        assert len(requests) == 2
        first = requests[0]
        assert first.method == "GET"
        assert first.url.path == f"/bot{TOKEN}/sendMessage"
        assert first.url.params["chat_id"] == "-100200"
        texts = sorted(r.url.params["text"] for r in requests)
        assert texts[0].startswith("GAME: Premier League\nTEAMS: Arsenal vs Chelsea")

    @pytest.mark.asyncio
    async def test_text_is_url_encoded(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        link = "https://www.sofascore.com/a-b/Xy#id:1"
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await TelegramDispatcher(CONFIG, client=client).dispatch([_pair(home="A & B", link=link)])

        raw_query = requests[0].url.query.decode()
        assert "\n" not in raw_query
        assert "#" not in raw_query
        assert "&text=" in raw_query or raw_query.startswith("text=")
        assert requests[0].url.params["text"].splitlines()[1] == "TEAMS: A & B vs Chelsea"

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "Leeds" in request.url.params["text"]:
                return httpx.Response(400, json={"ok": False, "description": "Bad Request"})
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            results = await TelegramDispatcher(CONFIG, client=client).dispatch(
                [_pair(), _pair(home="Leeds", away="Everton"), _pair(home="Spurs", away="Fulham")]
            )

        assert [r.delivered for r in results] == [True, False, True]
        failed = results[1]
        assert failed.error is not None
        assert "HTTPStatusError" in failed.error
        assert TOKEN not in failed.error
        assert failed.pair.signal.home_team == "Leeds"

    @pytest.mark.asyncio
    async def test_transport_error_reported(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            [result] = await TelegramDispatcher(CONFIG, client=client).dispatch([_pair()])

        assert not result.delivered
        assert not result.skipped
        assert "ConnectError" in (result.error or "")

    @pytest.mark.asyncio
    async def test_malformed_url_reported_per_pair(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        # A control character in the token makes httpx reject the URL before sending
        config = TelegramConfig(bot_token="123456:bad\ntoken", chat_id="-100200", api_base="https://tg.test")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            results = await TelegramDispatcher(config, client=client).dispatch(
                [_pair(), _pair(home="Leeds", away="Everton")]
            )

        assert len(results) == 2
        assert not any(r.delivered for r in results)
        assert all("InvalidURL" in (r.error or "") for r in results)

    @pytest.mark.asyncio
    async def test_missing_credentials_skips_without_sending(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            dispatcher = TelegramDispatcher(TelegramConfig(chat_id="-100200"), client=client)
            results = await dispatcher.dispatch([_pair(), _pair(home="Leeds")])

        assert [r.skipped for r in results] == [True, True]
        assert not any(r.delivered for r in results)

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        assert await TelegramDispatcher(CONFIG).dispatch([]) == []

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self) -> None:
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as client:
            dispatcher = TelegramDispatcher(CONFIG, client=client)
            await dispatcher.close()
            assert not client.is_closed


class TestBuildDispatcher:
    def test_disabled_alerts_log_only(self) -> None:
        assert isinstance(build_dispatcher(Settings(alerts_enabled=False)), LoggingDispatcher)

    def test_enabled_alerts_use_telegram(self) -> None:
        dispatcher = build_dispatcher(
            Settings(alerts_enabled=True, telegram_bot_token=TOKEN, telegram_chat_id="1")
        )
        assert isinstance(dispatcher, TelegramDispatcher)

    def test_selection_log_redacts_token(self) -> None:
        settings = Settings(alerts_enabled=True, telegram_bot_token=TOKEN, telegram_chat_id="1")
        with capture_logs() as logs:
            build_dispatcher(settings)

        [entry] = [e for e in logs if e["event"] == "alert_dispatcher_selected"]
        assert entry["channel"] == "telegram"
        assert entry["bot"] == "123456:***"
        assert "SECRET" not in repr(logs)

    def test_bare_env_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SL_TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.delenv("SL_TELEGRAM_CHAT_ID", raising=False)
        monkeypatch.setenv("BOT_TOKEN", TOKEN)
        monkeypatch.setenv("CHAT_ID", "42")
        settings = Settings(_env_file=None)
        assert settings.telegram_bot_token == TOKEN
        assert settings.telegram_chat_id == "42"
        assert settings.telegram_token_safe_log == "123456:***"


@pytest.mark.asyncio
async def test_logging_dispatcher_marks_delivered() -> None:
    [result] = await LoggingDispatcher().dispatch([_pair()])
    assert result.delivered
