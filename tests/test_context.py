import pytest

from handlers.context import CommandContext
from permissions import Role
from conftest import ADMIN, TARGET, USER


def make_context(services, message, args):
    return CommandContext(message, "test", args, plugin=None, services=services)


@pytest.mark.asyncio
async def test_context_helpers(services, make_message, mock_transport):
    message = make_message(".test @40000000000 hello\nworld", mentions=["40000000000:3@s.whatsapp.net", ADMIN])
    ctx = make_context(services, message, ["@40000000000", "hello", "world"])

    assert ctx.sender == USER
    assert ctx.text == "@40000000000 hello world"
    assert ctx.raw_args == "@40000000000 hello\nworld"
    assert ctx.extract_mentions() == [TARGET, ADMIN]
    assert ctx.get_target() == TARGET
    assert ctx.args_without_mentions() == ["hello", "world"]
    assert ctx.parse_duration("2h") == 7_200_000
    assert ctx.format_duration(90_000) == "1m 30s"
    assert await ctx.get_role() == Role.USER
    assert await ctx.get_role(ADMIN) == Role.ADMIN

    await ctx.reply("hi")
    mock_transport.send_text.assert_called_once_with(message.chat_id, "hi", mentions=None, quoted=message)

    await ctx.send_message("plain", mentions=[TARGET])
    mock_transport.send_text.assert_called_with(message.chat_id, "plain", mentions=[TARGET])


@pytest.mark.asyncio
async def test_context_quoted_target(services, make_message, quoted_from):
    quoted = quoted_from("40000000000:7@s.whatsapp.net", "spam")
    ctx = make_context(services, make_message(".test", quoted=quoted), [])

    assert ctx.get_quoted_message() is quoted
    assert ctx.get_target() == TARGET
    assert ctx.raw_args == ""

    ctx = make_context(services, make_message(".test"), [])
    assert ctx.get_target() is None
