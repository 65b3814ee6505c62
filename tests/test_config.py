# tests/test_config.py
from civic_node import config as civic_config


def test_defaults_without_file(tmp_path):
    cfg = civic_config.load_config(str(tmp_path / "missing.yaml"))
    assert civic_config.get_genesis_admin(cfg) == "@admin"
    assert civic_config.get_token_decimals(cfg) == 18
    assert civic_config.persistence_enabled(cfg) is False
    assert civic_config.get_bind_port(cfg) == 8000


def test_yaml_merges_over_defaults(tmp_path):
    path = tmp_path / "civic_config.yaml"
    path.write_text(
        "genesis:\n"
        "  admin: '@mayor'\n"
        "  members: ['@bob']\n"
        "token:\n"
        "  balances:\n"
        "    '@bob': 1000\n"
        "cors:\n"
        "  origins: http://example.org\n"
    )
    cfg = civic_config.load_config(str(path))

    assert civic_config.get_genesis_admin(cfg) == "@mayor"
    assert civic_config.get_genesis_members(cfg) == ["@bob"]
    assert civic_config.get_token_balances(cfg) == {"@bob": 1000}
    # untouched keys keep their defaults
    assert civic_config.get_token_decimals(cfg) == 18
    assert civic_config.get_cors_origins(cfg) == ["http://example.org"]


def test_bad_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "civic_config.yaml"
    path.write_text("genesis: [unclosed\n")
    cfg = civic_config.load_config(str(path))
    assert cfg == civic_config.default_config()


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("CIVIC_ADMIN", "@env_admin")
    monkeypatch.setenv("CIVIC_PORT", "9100")
    monkeypatch.setenv("CIVIC_PERSIST", "true")
    monkeypatch.setenv("CIVIC_TOKEN_DECIMALS", "not-a-number")

    cfg = civic_config.load_config(str(tmp_path / "missing.yaml"))
    assert civic_config.get_genesis_admin(cfg) == "@env_admin"
    assert civic_config.get_bind_port(cfg) == 9100
    assert civic_config.persistence_enabled(cfg) is True
    assert civic_config.get_token_decimals(cfg) == 18


def test_defaults_are_not_shared():
    a = civic_config.default_config()
    a["genesis"]["members"].append("@x")
    assert civic_config.default_config()["genesis"]["members"] == []
