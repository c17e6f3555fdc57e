from rustdrill import ui


def test_no_emoji_follows_environment(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    assert ui.no_emoji() is True
    monkeypatch.delenv("NO_EMOJI")
    assert ui.no_emoji() is False


def test_plain_symbols(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    assert ui.format_warning("Ran x with errors") == "! Ran x with errors"
    assert ui.format_success("Successfully ran x") == "✓ Successfully ran x"


def test_emoji_symbols(monkeypatch):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    assert ui.format_warning("m") == "⚠️  m"
    assert ui.format_success("m") == "✅ m"


def test_warn_prints_message(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    ui.warn("Compiling of a.rs failed!")
    out = capsys.readouterr().out
    assert out.strip() == "! Compiling of a.rs failed!"


def test_success_prints_message(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    ui.success("Successfully tested b.rs!")
    out = capsys.readouterr().out
    assert out.strip() == "✓ Successfully tested b.rs!"