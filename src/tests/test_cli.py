"""
Tests for the command-line interface.
"""

import asyncio
import json

import pytest

from src.subtrans import batching, cli
from src.tests.helpers import VALID_KEY, FakeTranslator, word_count

SRT = "1\n00:00:01,000 --> 00:00:02,000\nHello.\n\n2\n00:00:03,000 --> 00:00:04,000\nBye.\n"


@pytest.fixture
def offline(monkeypatch, tmp_path):
    for name in ("SUBTRANS_API_KEY", "GEMINI_API_KEY", "SUBTRANS_LANGUAGE", "SUBTRANS_MAX_TOKENS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(batching, "count_tokens", word_count)
    return monkeypatch


def test_parse_args():
    args = cli.parse_args(["--api-key", "k", "translate", "a.srt", "b.srt", "--jsonl", "--max-tokens", "300"])

    assert args.command == "translate"
    assert args.inputs == ["a.srt", "b.srt"]
    assert args.jsonl
    assert args.max_tokens == 300


def test_missing_api_key(offline):
    assert asyncio.run(cli.main_async(["validate-key"])) == cli.EXIT_FAILURE


def test_validate_short_key_exits_with_auth_code(offline, capsys):
    code = asyncio.run(cli.main_async(["--api-key", "short", "validate-key"]))

    assert code == cli.EXIT_AUTH
    out = json.loads(capsys.readouterr().out)
    assert out["valid"] is False
    assert out["error_type"] == "auth"


def test_translate_writes_output(offline, tmp_path, capsys):
    src = tmp_path / "Show.S01E01.720p.srt"
    src.write_text(SRT, encoding="utf-8")
    contexts = []

    def fake_translator(model, base_url, context=None):
        contexts.append(context)
        return FakeTranslator()

    offline.setattr(cli, "OpenAICompatibleTranslator", fake_translator)

    code = asyncio.run(cli.main_async(["--api-key", VALID_KEY, "translate", str(src), "--jsonl"]))

    assert code == cli.EXIT_OK
    assert contexts == ["Show S01E01"]
    out = (tmp_path / "Show.S01E01.720p.pt-BR.srt").read_text(encoding="utf-8")
    assert out == "1\n00:00:01,000 --> 00:00:02,000\nT:Hello.\n\n2\n00:00:03,000 --> 00:00:04,000\nT:Bye.\n"
    kinds = [json.loads(line)["kind"] for line in capsys.readouterr().out.splitlines()]
    assert kinds == ["progress", "complete", "result"]


def test_output_flag_rejects_multiple_inputs(offline):
    code = asyncio.run(
        cli.main_async(["--api-key", VALID_KEY, "translate", "a.srt", "b.srt", "--output", "x.srt"])
    )
    assert code == cli.EXIT_FAILURE
