import pytest

from finance_tracker.core import settings


def test_read_config_file(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "# comment\n"
        "GEMINI_MODEL: gemini-2.5-flash  # inline\n"
        "WAHA_API_URL: \"http://waha:3000\"\n"
        "WAHA_API_KEY:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    values = settings.read_config_file(str(path))

    assert values == {"GEMINI_MODEL": "gemini-2.5-flash", "WAHA_API_URL": "http://waha:3000"}


def test_read_config_file_missing() -> None:
    assert settings.read_config_file(None) == {}
    assert settings.read_config_file("/nonexistent/config.yaml") == {}


def test_get_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    assert settings.get_env_int("PORT", 3000) == 8080
    monkeypatch.setenv("PORT", "abc")
    assert settings.get_env_int("PORT", 3000) == 3000
    monkeypatch.setenv("PORT", "0")
    assert settings.get_env_int("PORT", 3000, min_value=1) == 3000


def test_blank_values_count_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "  ")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "key")
    assert settings.get_env("SUPABASE_URL") is None
    assert settings.get_env("SUPABASE_ANON_KEY") == "key"


@pytest.mark.parametrize(
    ("name", "value", "expected"),
    [
        ("GEMINI_API_KEY", "AIzaSyExample", "AI...le"),
        ("WAHA_API_URL", "http://waha:3000", "http://waha:3000"),
        ("SUPABASE_URL", "eyJa.b.c", "ey....c"),
        ("WAHA_API_KEY", "abc", "****"),
    ],
)
def test_mask_env_value(name: str, value: str, expected: str) -> None:
    assert settings.mask_env_value(name, value) == expected
