import json
import logging

import pytest

from gwsm import auth, config
from gwsm.config import GSMConfig
from gwsm.errors import ConfigError
from gwsm.logs import get_log_paths, init_logging
from gwsm.settings import Settings, max_threads

def dwd(name="work"):
    return GSMConfig(name=name, mode="dwd", credentialsFile="/keys/sa.json", subject="admin@example.com")

def test_create_defaults(tmp_path):
    path = config.create_config(dwd(), tmp_path)
    assert(path == tmp_path / "work.yaml")
    c = config.get_config("work", tmp_path)
    assert(c.mode == "dwd")
    assert(c.subject == "admin@example.com")
    assert(c.threads == 4)
    assert(c.standardDelay == 500)
    assert(c.logFile.endswith("gsm.log"))
    assert(c.scopes == config.DEFAULT_SCOPES)
    assert(not c.default)
    assert("default" not in path.read_text())
    with pytest.raises(ConfigError):
        config.create_config(dwd(), tmp_path)

@pytest.mark.parametrize("cfg", [
    GSMConfig(name="x", mode="oauth"),
    GSMConfig(name="x", mode="adc", credentialsFile="k.json", subject="a@example.com"),
    GSMConfig(name="x", mode="dwd", subject="a@example.com"),
    GSMConfig(name="x", mode="dwd", credentialsFile="k.json"),
    GSMConfig(name="x", mode="user", credentialsFile="c.json", subject="a@example.com"),
    GSMConfig(name="x", mode="user", credentialsFile="c.json", serviceAccount="sa@p.iam.gserviceaccount.com"),
    GSMConfig(mode="user", credentialsFile="c.json"),
])
def test_create_invalid(tmp_path, cfg):
    with pytest.raises(ConfigError):
        config.create_config(cfg, tmp_path)

def test_update_and_rename(tmp_path):
    config.create_config(dwd(), tmp_path)
    c = config.update_config("work", GSMConfig(name="office", threads=40, standardDelay=100), tmp_path)
    assert(c.name == "office")
    assert(c.threads == 16)
    assert(not (tmp_path / "work.yaml").exists())
    c = config.get_config("office", tmp_path)
    assert(c.standardDelay == 100)
    assert(c.subject == "admin@example.com")
    with pytest.raises(ConfigError):
        config.update_config("office", GSMConfig(serviceAccount="sa@p.iam.gserviceaccount.com"), tmp_path)
    config.create_config(dwd("home"), tmp_path)
    with pytest.raises(ConfigError):
        config.update_config("office", GSMConfig(name="home"), tmp_path)

def test_load_and_list(tmp_path):
    config.create_config(dwd("one"), tmp_path)
    config.create_config(GSMConfig(name="two", mode="adc", subject="a@example.com"), tmp_path)
    config.load_config("one", tmp_path)
    assert((tmp_path / ".gsm.yaml").exists())
    assert(not (tmp_path / "one.yaml").exists())
    config.load_config("two", tmp_path)
    assert((tmp_path / "one.yaml").exists())
    assert(config.get_config(".gsm", tmp_path).name == "two")
    (tmp_path / "broken.yaml").write_text("- just\n- a list\n")
    configs = config.list_configs(tmp_path)
    assert([c.name for c in configs] == ["two", "one"])
    assert(configs[0].default)
    assert(config.get_scopes("one", tmp_path).startswith("https://www.googleapis.com/auth/admin.directory.user,"))
    with pytest.raises(ConfigError):
        config.load_config("missing", tmp_path)

def test_remove(tmp_path):
    config.create_config(dwd(), tmp_path)
    config.remove_config("work", tmp_path)
    assert(config.list_configs(tmp_path) == [])
    with pytest.raises(ConfigError):
        config.remove_config("work", tmp_path)

def test_apply_config():
    s = Settings()
    config.apply_config(GSMConfig(threads=8, standardDelay=250), s)
    assert(s.standard_delay == 250)
    assert(max_threads(0, s) == 8)
    assert(max_threads(2, s) == 2)
    assert(max_threads(100, s) == 16)
    assert(max_threads(0, Settings()) == 4)

def test_token_path(tmp_path):
    assert(GSMConfig(name="me").token_path(tmp_path) == tmp_path / "me_token.json")
    token = tmp_path / "elsewhere.json"
    assert(GSMConfig(name="me", credentialsFile=str(token)).token_path(tmp_path) == token)

def test_user_mode(tmp_path):
    config.create_config(GSMConfig(name="me", mode="user"), tmp_path)
    assert(config.get_config("me", tmp_path).credentialsFile == "")
    cfg = GSMConfig(name="me", mode="user", credentialsFile=str(tmp_path / "token.json"), scopes=["s"])
    with pytest.raises(ConfigError):
        auth.transport_from_config(cfg)
    (tmp_path / "token.json").write_text(json.dumps({"type": "authorized_user", "client_id": "id",
                                                     "client_secret": "secret", "refresh_token": "r"}))
    transport = auth.transport_from_config(cfg)
    assert(transport.credentials.refresh_token == "r")

def test_init_logging(tmp_path):
    log_file = tmp_path / "gsm.log"
    logger = init_logging(log_file, logging.INFO)
    init_logging(log_file, logging.INFO)
    try:
        assert(get_log_paths().count(str(log_file)) == 1)
        logging.getLogger("gwsm.retry").warning("k: boom - Retrying...")
        for h in logger.handlers:
            h.flush()
        line = log_file.read_text().strip()
        assert(line.startswith("["))
        assert(line.endswith("]\t WARNING - k: boom - Retrying..."))
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
