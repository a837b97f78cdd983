"""Tests for example question generation and parsing."""

import pytest

from ragchat.core.client import GeneratedAnswer
from ragchat.core.suggestions import (
    FALLBACK_QUESTIONS,
    SuggestionGenerator,
    parse_questions,
)
from ragchat.exceptions import MalformedResponseError, UnknownRemoteError


def test_parses_fenced_json_block():
    assert parse_questions('```json\n["Q1?","Q2?"]\n```') == ["Q1?", "Q2?"]


def test_flattens_grouped_questions():
    text = (
        '[{"product":"A","questions":["Qa?"]},'
        '{"product":"B","questions":["Qb?","Qc?"]}]'
    )
    assert parse_questions(text) == ["Qa?", "Qb?", "Qc?"]


def test_extracts_array_from_surrounding_prose():
    text = 'Here are some questions:\n["What is X?", 3, "How does Y work?"]\nEnjoy!'
    assert parse_questions(text) == ["What is X?", "How does Y work?"]


def test_empty_array_gives_no_questions():
    assert parse_questions("[]") == []


@pytest.mark.parametrize("text", ["not json at all", '{"answer": 42}', "[1, 2]"])
def test_unusable_output_is_malformed(text):
    with pytest.raises(MalformedResponseError):
        parse_questions(text)


@pytest.mark.asyncio
async def test_generate_falls_back_on_malformed_output(fake_client, store):
    fake_client.generate_answer.return_value = GeneratedAnswer(text="not json at all")

    questions = await SuggestionGenerator(fake_client).generate(store)

    assert questions == FALLBACK_QUESTIONS
    assert len(questions) == 4


@pytest.mark.asyncio
async def test_generate_falls_back_on_remote_error(fake_client, store):
    fake_client.generate_answer.side_effect = UnknownRemoteError("Gemini request failed")

    assert await SuggestionGenerator(fake_client).generate(store) == FALLBACK_QUESTIONS


@pytest.mark.asyncio
async def test_generate_returns_parsed_questions(fake_client, store):
    fake_client.generate_answer.return_value = GeneratedAnswer(
        text='```json\n["Q1?","Q2?"]\n```'
    )

    questions = await SuggestionGenerator(fake_client).generate(store)

    assert questions == ["Q1?", "Q2?"]
    store_name, prompt = fake_client.generate_answer.await_args.args
    assert store_name == store.name
    assert "JSON array of 6 question strings" in prompt


@pytest.mark.asyncio
async def test_generate_caps_question_count(fake_client, store):
    fake_client.generate_answer.return_value = GeneratedAnswer(
        text=str([f"Q{i}?" for i in range(10)]).replace("'", '"')
    )

    questions = await SuggestionGenerator(fake_client, count=6).generate(store)

    assert questions == [f"Q{i}?" for i in range(6)]


@pytest.mark.asyncio
async def test_fallback_list_is_a_copy(fake_client, store):
    fake_client.generate_answer.return_value = GeneratedAnswer(text="nope")

    questions = await SuggestionGenerator(fake_client).generate(store)
    questions.append("mutated")

    assert "mutated" not in FALLBACK_QUESTIONS
