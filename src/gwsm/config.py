"""
Named configurations, one YAML file per config in the config directory
(settings.cfg_dir, ~/.config/gsm by default):

    <cfg_dir>/<name>.yaml    inactive configs
    <cfg_dir>/.gsm.yaml      the active (default) config

A config holds the credentials mode and everything needed to build the
transport plus the pacing knobs that get pushed into settings.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Self

import yaml

from .auth import MODES
from .errors import ConfigError
from .resources import GoogleWorkSpaceResourceBase
from .settings import Settings, max_threads, settings

logger = logging.getLogger(__name__)

DEFAULT_NAME = ".gsm"
DEFAULT_STANDARD_DELAY = 500
CONTACTS_SCOPE = "https://www.google.com/m8/feeds/contacts/"

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/admin.directory.user",
    "https://www.googleapis.com/auth/admin.directory.customer",
    "https://www.googleapis.com/auth/admin.directory.group",
    "https://www.googleapis.com/auth/admin.directory.group.member",
    "https://www.googleapis.com/auth/admin.directory.orgunit",
    "https://www.googleapis.com/auth/admin.directory.rolemanagement",
    "https://www.googleapis.com/auth/admin.directory.user.security",
    "https://www.googleapis.com/auth/admin.directory.domain",
    "https://www.googleapis.com/auth/admin.directory.device.mobile",
    "https://www.googleapis.com/auth/admin.directory.device.chromeos",
    "https://www.googleapis.com/auth/admin.directory.resource.calendar",
    "https://www.googleapis.com/auth/admin.directory.userschema",
    CONTACTS_SCOPE,
    "https://www.googleapis.com/auth/drive",
    "https://mail.google.com/",
    "https://www.googleapis.com/auth/gmail.settings.sharing",
    "https://www.googleapis.com/auth/gmail.settings.basic",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/cloud-identity.groups",
    "https://www.googleapis.com/auth/cloud-identity.userinvitations",
    "https://www.googleapis.com/auth/cloud-identity.devices",
    "https://www.googleapis.com/auth/cloud-identity.devices.lookup",
    "https://www.googleapis.com/auth/apps.groups.settings",
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/apps.licensing",
    "https://www.googleapis.com/auth/directory.readonly",
    "https://www.googleapis.com/auth/contacts.other.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/admin.reports.audit.readonly",
    "https://www.googleapis.com/auth/admin.reports.usage.readonly",
    "https://www.googleapis.com/auth/postmaster.readonly",
    "https://www.googleapis.com/auth/admin.contact.delegation",
    "https://www.googleapis.com/auth/admin.chrome.printers",
]

@dataclass
class GSMConfig(GoogleWorkSpaceResourceBase):
    """
    Keys are named as they appear in the YAML file.
    Empty values are not written.
    """
    name: str = field(default="")
    credentialsFile: str = field(default="")
    serviceAccount: str = field(default="")
    mode: str = field(default="")
    subject: str = field(default="")
    logFile: str = field(default="")
    scopes: List[str]|None = field(default=None)
    threads: int = field(default=0)
    standardDelay: int = field(default=0)
    default: bool = field(default=False)

    def __str__(self) -> str:
        return f"{self.name}<{self.mode}>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def fixup(self) -> None:
        self.threads = int(self.threads or 0)
        self.standardDelay = int(self.standardDelay or 0)
        if self.scopes is not None:
            self.scopes = [str(s) for s in self.scopes]

    def to_yaml(self) -> str:
        b = self.trim()
        # default is derived from the file name, never stored
        b.pop("default", None)
        return yaml.safe_dump(b, sort_keys=False)

    @classmethod
    def from_yaml(cls, text: str) -> Self:
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ConfigError("config file does not contain a mapping")
        return cls.from_api(data)

    def token_path(self, cfg_dir: Path|None = None) -> Path:
        """
        Where the cached user token of a 'user' mode config lives.
        credentialsFile when set, <cfg_dir>/<name>_token.json otherwise.
        """
        if self.credentialsFile:
            return Path(self.credentialsFile).expanduser()
        return _dir(cfg_dir) / f"{self.name}_token.json"

def _dir(cfg_dir: Path|str|None) -> Path:
    return Path(cfg_dir) if cfg_dir is not None else settings.cfg_dir

def config_path(name: str, cfg_dir: Path|str|None = None) -> Path:
    return _dir(cfg_dir) / f"{name}.yaml"

def _write(config: GSMConfig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.to_yaml(), encoding="utf-8")

def create_config(config: GSMConfig, cfg_dir: Path|str|None = None) -> Path:
    """
    Validate config for its mode, fill in the defaults and write it to
    <cfg_dir>/<name>.yaml.  Returns the path written.
    """
    mode = config.mode
    if mode not in MODES:
        raise ConfigError(f"{mode} is not a valid mode")
    if not config.name:
        raise ConfigError("a config needs a name")
    if mode == "adc" and config.credentialsFile:
        raise ConfigError(f"credentialsFile is not used with {mode} mode")
    if mode == "dwd" and not config.credentialsFile:
        raise ConfigError(f"credentialsFile is required with {mode} mode")
    if mode in ("dwd", "user") and config.serviceAccount:
        raise ConfigError(f"serviceAccount is not used with {mode} mode")
    if mode in ("dwd", "adc") and not config.subject:
        raise ConfigError(f"subject is required with {mode} mode")
    if mode == "user" and config.subject:
        raise ConfigError(f"subject is not used with {mode} mode")
    path = config_path(config.name, cfg_dir)
    if path.exists():
        raise ConfigError(f"{config.name} already exists")
    if not config.threads:
        config.threads = max_threads(0, Settings())
    if not config.standardDelay:
        config.standardDelay = DEFAULT_STANDARD_DELAY
    if not config.logFile:
        config.logFile = str(Path.home() / "gsm.log")
    if config.scopes is None:
        config.scopes = list(DEFAULT_SCOPES)
    _write(config, path)
    logger.info("created config %s", path)
    return path

def get_config(name: str, cfg_dir: Path|str|None = None) -> GSMConfig:
    path = config_path(name, cfg_dir)
    if not path.is_file():
        raise ConfigError(f"config {name} not found at {path}")
    return GSMConfig.from_yaml(path.read_text(encoding="utf-8"))

def update_config(name: str, config: GSMConfig, cfg_dir: Path|str|None = None) -> GSMConfig:
    """
    Change the set fields of config name.  Setting name renames the config
    file (except for the active one, which stays .gsm.yaml).
    Mode can't be changed, options that don't apply to the mode are rejected.
    """
    old = get_config(name, cfg_dir)
    if config.credentialsFile:
        if old.mode == "adc":
            raise ConfigError(f"credentialsFile is not used with {old.mode} mode")
        old.credentialsFile = config.credentialsFile
    if config.subject:
        if old.mode == "user":
            raise ConfigError(f"subject is not used with {old.mode} mode")
        old.subject = config.subject
    if config.serviceAccount:
        if old.mode != "adc":
            raise ConfigError(f"serviceAccount is not used with {old.mode} mode")
        old.serviceAccount = config.serviceAccount
    if config.logFile:
        old.logFile = config.logFile
    if config.name and config.name != old.name:
        if config_path(config.name, cfg_dir).exists():
            raise ConfigError(f"{config.name} already exists")
        old.name = config.name
    if config.scopes is not None:
        old.scopes = list(config.scopes)
    if config.standardDelay:
        old.standardDelay = config.standardDelay
    if config.threads:
        old.threads = max_threads(config.threads)
    path = config_path(name, cfg_dir)
    _write(old, path)
    if name != DEFAULT_NAME and old.name != name:
        path.rename(config_path(old.name, cfg_dir))
    return old

def load_config(name: str, cfg_dir: Path|str|None = None) -> Path:
    """
    Make config name the active one.  The currently active config is moved
    back to <its name>.yaml first.
    """
    get_config(name, cfg_dir)
    active = config_path(DEFAULT_NAME, cfg_dir)
    if active.exists():
        current = get_config(DEFAULT_NAME, cfg_dir)
        logger.info("rename %s to %s", active, config_path(current.name, cfg_dir))
        active.rename(config_path(current.name, cfg_dir))
    logger.info("rename %s to %s", config_path(name, cfg_dir), active)
    config_path(name, cfg_dir).rename(active)
    return active

def list_configs(cfg_dir: Path|str|None = None) -> List[GSMConfig]:
    """
    Every readable config, the active one first.
    Files that fail to parse are logged and skipped.
    """
    d = _dir(cfg_dir)
    if not d.is_dir():
        raise ConfigError(f"config directory {d} not found")
    configs = []
    for p in sorted(p for p in d.iterdir() if p.name.endswith(".yaml")):
        try:
            c = GSMConfig.from_yaml(p.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError, ConfigError, TypeError) as e:
            logger.warning("error reading %s: %s", p.name, e)
            continue
        c.default = p.name == f"{DEFAULT_NAME}.yaml"
        configs.append(c)
    return sorted(configs, key=lambda c: not c.default)

def remove_config(name: str, cfg_dir: Path|str|None = None) -> None:
    path = config_path(name, cfg_dir)
    if not path.is_file():
        raise ConfigError(f"config {name} not found at {path}")
    path.unlink()

def get_scopes(name: str, cfg_dir: Path|str|None = None) -> str:
    """Comma separated scopes, ready to paste into the Admin Console's domain wide delegation"""
    return ",".join(get_config(name, cfg_dir).scopes or [])

def apply_config(config: GSMConfig, s: Settings|None = None) -> Settings:
    """
    Push the config's pacing values into the (global by default) settings.
    """
    target = s if s is not None else settings
    if config.threads:
        target.threads = max_threads(config.threads)
    if config.standardDelay:
        target.standard_delay = config.standardDelay
    target.fixup()
    return target
