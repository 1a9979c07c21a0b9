import pytest
from telegram.error import BadRequest, NetworkError

from walletwatch.notifier import AlertDispatcher


class DummyBot:
    def __init__(self) -> None:
        self.calls = []

    async def send_message(self, **kwargs) -> None:
        self.calls.append(kwargs)


class FallbackBot(DummyBot):
    async def send_message(self, **kwargs) -> None:
        if kwargs.get("parse_mode") == "MarkdownV2":
            raise BadRequest("Can't parse entities")
        await super().send_message(**kwargs)


class DownBot(DummyBot):
    async def send_message(self, **kwargs) -> None:
        raise NetworkError("connection reset")


@pytest.mark.asyncio
async def test_send_uses_markdown() -> None:
    bot = DummyBot()
    dispatcher = AlertDispatcher(bot, chat_id=-100123)

    assert await dispatcher.send("*hi* 1\\.0") is True
    assert bot.calls == [
        {
            "chat_id": -100123,
            "text": "*hi* 1\\.0",
            "parse_mode": "MarkdownV2",
            "disable_web_page_preview": True,
        }
    ]


@pytest.mark.asyncio
async def test_send_falls_back_to_plain_text() -> None:
    bot = FallbackBot()
    dispatcher = AlertDispatcher(bot, chat_id=1)

    assert await dispatcher.send("Amount 1\\.5") is True
    assert len(bot.calls) == 1
    assert "parse_mode" not in bot.calls[0]
    assert bot.calls[0]["text"] == "Amount 1.5"


@pytest.mark.asyncio
async def test_send_reports_failure() -> None:
    dispatcher = AlertDispatcher(DownBot(), chat_id=1)
    assert await dispatcher.send("text") is False
