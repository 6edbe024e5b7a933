from ton_gateway.config import (
    GatewayConfig,
    _load_timeout,
    _parse_origins,
    load_api_key,
)


def test_load_timeout_invalid_env(monkeypatch):
    monkeypatch.setenv("TON_HTTP_TIMEOUT", "not-a-number")
    assert _load_timeout() == 10.0  # falls back to default on parse error


def test_load_timeout_valid_env(monkeypatch):
    monkeypatch.setenv("TON_HTTP_TIMEOUT", "5.5")
    assert _load_timeout() == 5.5


def test_load_api_key_env_over_file(monkeypatch, tmp_path):
    # Env var wins over file
    key_file = tmp_path / "apikey.txt"
    key_file.write_text("file-key", encoding="utf-8")
    monkeypatch.setenv("TON_API_KEY", "env-key")
    monkeypatch.setenv("TON_API_KEY_FILE", str(key_file))
    assert load_api_key() == "env-key"


def test_load_api_key_from_file(monkeypatch, tmp_path):
    key_file = tmp_path / "apikey.txt"
    key_file.write_text("file-key\n", encoding="utf-8")
    monkeypatch.delenv("TON_API_KEY", raising=False)
    monkeypatch.setenv("TON_API_KEY_FILE", str(key_file))
    assert load_api_key() == "file-key"


def test_missing_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("TON_API_KEY", raising=False)
    monkeypatch.setenv("TON_API_KEY_FILE", str(tmp_path / "absent.txt"))
    assert load_api_key() is None


def test_api_key_hidden_from_repr():
    cfg = GatewayConfig(api_key="super-secret")
    assert "super-secret" not in repr(cfg)


def test_parse_origins():
    raw = " https://a.example.com , , https://b.example.com ,"
    assert _parse_origins(raw) == ["https://a.example.com", "https://b.example.com"]
    assert _parse_origins(None) == ["*"]
    assert _parse_origins(" , ") == ["*"]


def test_wallet_defaults():
    cfg = GatewayConfig(api_key=None, subwallet_id=698983191, send_mode=3)
    assert cfg.subwallet_id == 698983191
    assert cfg.send_mode == 3
    assert cfg.message_ttl > 0
