"""
Tests for the terminal client and provider configuration helpers.
"""

import pytest

from chat_relay.api import cli
from chat_relay.llm import provider_config


class TestLoadKey:
    """Credential fallback resolution."""

    def test_env_var_wins(self, monkeypatch, tmp_path):
        monkeypatch.setattr(provider_config, "KEY_DIR", str(tmp_path))
        (tmp_path / "openai.key").write_text("from-file\n")
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert provider_config.load_key("openai") == "from-env"

    def test_key_file_fallback(self, monkeypatch, tmp_path):
        monkeypatch.setattr(provider_config, "KEY_DIR", str(tmp_path))
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        (tmp_path / "deepseek.key").write_text("  from-file\n")
        assert provider_config.load_key("deepseek") == "from-file"

    def test_missing_key(self, monkeypatch, tmp_path):
        monkeypatch.setattr(provider_config, "KEY_DIR", str(tmp_path))
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        assert provider_config.load_key("groq") is None

    def test_none_name(self):
        assert provider_config.load_key(None) is None


def _feed(monkeypatch, lines):
    answers = iter(lines)

    def fake_input(prompt=""):
        try:
            return next(answers)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)


class TestCli:
    """Interactive loop behavior."""

    def test_chat_turn_and_exit(self, monkeypatch, capsys, router, store):
        _feed(monkeypatch, ["hello", "exit"])
        assert cli.main(["--provider", "alpha", "--session", "s1", "--api-key", "k"], router=router) == 0
        assert "alpha: hi there" in capsys.readouterr().out
        assert len(store.read("s1")) == 2

    def test_provider_failure_is_printed(self, monkeypatch, capsys, router, store):
        _feed(monkeypatch, ["hello"])
        cli.main(["--provider", "broken", "--session", "s1", "--api-key", "k"], router=router)
        assert "BROKEN HTTP ERROR (500)" in capsys.readouterr().out
        assert [m.content for m in store.read("s1")] == ["hello"]

    def test_clear_and_switch_provider(self, monkeypatch, capsys, router, store):
        _feed(monkeypatch, ["hello", "clear chat", "/provider keyless", "again", "/history"])
        cli.main(["--provider", "alpha", "--session", "s1", "--api-key", "k"], router=router)
        out = capsys.readouterr().out
        assert "Chat cleared." in out
        assert "assistant/keyless: free reply" in out
        assert [m.content for m in store.read("s1")] == ["again", "free reply"]

    def test_unknown_provider_switch_lists_known(self, monkeypatch, capsys, router):
        _feed(monkeypatch, ["/provider nope"])
        cli.main(["--provider", "alpha", "--session", "s1"], router=router)
        assert "Known providers: alpha, broken, keyless\n" in capsys.readouterr().out

    def test_client_side_provider_not_selectable(self, monkeypatch, capsys, router, store):
        _feed(monkeypatch, ["/provider puter", "hello"])
        cli.main(["--provider", "keyless", "--session", "s1"], router=router)
        out = capsys.readouterr().out
        assert "Provider: puter" not in out
        assert "keyless: free reply" in out
        assert [m.provider for m in store.read("s1")] == [None, "keyless"]


@pytest.mark.parametrize("value,expected", [("true", True), ("0", False), ("yes", True)])
def test_env_bool(monkeypatch, value, expected):
    monkeypatch.setenv("SOME_FLAG", value)
    assert provider_config._env_bool("SOME_FLAG", not expected) is expected
