import datetime

import pytest

from echoserver._types import Response
from echoserver.dispatch import (
    ECHO_USAGE,
    GOODBYE,
    GREETING,
    SAY_SOMETHING,
    UNKNOWN_COMMAND,
    dispatch,
    handle_command,
    too_long,
)


def test_empty_line_prompts():
    assert dispatch("") == Response("Say something...\n")
    assert SAY_SOMETHING == "Say something...\n"


@pytest.mark.parametrize("line", ["hello", "HELLO", "Hello", "hElLo"])
def test_hello_any_case(line):
    response = dispatch(line)
    assert response.reply == "Hi there!\n" == GREETING
    assert response.close is False


@pytest.mark.parametrize("line", ["bye", "BYE", "Bye"])
def test_bye_closes(line):
    assert dispatch(line) == Response("Goodbye!\n", close=True)


def test_plain_text_is_echoed_with_case_preserved():
    assert dispatch("Some Mixed Case text") == Response("Some Mixed Case text\n")


def test_personality_words_only_match_exactly():
    assert dispatch("hello there") == Response("hello there\n")
    assert dispatch("goodbye") == Response("goodbye\n")


def test_time_command_uses_24_hour_clock():
    now = datetime.datetime(2024, 5, 1, 21, 7, 3)
    assert dispatch("/time", now=now) == Response("Server time: 21:07:03\n")


def test_time_command_defaults_to_local_clock():
    response = handle_command("/time")
    assert response.reply.startswith("Server time: ")
    assert len(response.reply) == len("Server time: HH:MM:SS\n")


def test_quit_closes():
    assert dispatch("/quit") == Response(GOODBYE, close=True)


def test_echo_joins_arguments_with_single_spaces():
    assert dispatch("/echo a b c") == Response("a b c\n")
    assert dispatch("/echo   spaced    out") == Response("spaced out\n")


def test_echo_without_arguments_shows_usage():
    assert dispatch("/echo") == Response("Usage: /echo <message>\n")
    assert ECHO_USAGE == "Usage: /echo <message>\n"


@pytest.mark.parametrize("line", ["/TIME", "/Echo hi", "/nope", "/"])
def test_unknown_commands(line):
    assert dispatch(line) == Response(UNKNOWN_COMMAND)
    assert UNKNOWN_COMMAND == "Unknown command\n"


def test_too_long_message():
    assert too_long() == "Message too long. Max 1024 bytes allowed.\n"
    assert too_long(16) == "Message too long. Max 16 bytes allowed.\n"
