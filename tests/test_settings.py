from osint_lookup.settings import DEFAULT_USER_AGENT, LookupSettings, cors_allow_origins


def test_defaults(monkeypatch):
    for name in ("OSINT_PROBE_TIMEOUT_S", "OSINT_USER_AGENT", "OSINT_BREACH_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    settings = LookupSettings.from_env()
    assert settings.timeout_s == 8.0
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_timeout_is_clamped_and_bad_values_ignored(monkeypatch):
    monkeypatch.setenv("OSINT_PROBE_TIMEOUT_S", "600")
    assert LookupSettings.from_env().timeout_s == 60.0
    monkeypatch.setenv("OSINT_PROBE_TIMEOUT_S", "soon")
    assert LookupSettings.from_env().timeout_s == 8.0


def test_cors_origins(monkeypatch):
    monkeypatch.delenv("OSINT_CORS_ORIGINS", raising=False)
    assert cors_allow_origins() == ["*"]
    monkeypatch.setenv("OSINT_CORS_ORIGINS", "https://a.example, https://b.example,")
    assert cors_allow_origins() == ["https://a.example", "https://b.example"]
