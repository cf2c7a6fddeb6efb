import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import yaml

from caldav_ics_sync.storage import StorageStrategy

"""
Settings of the sync engine.  Values come from an optional json or yaml
config file and are overridden by environment variables, the same
variables the server process is configured with.
"""

log = logging.getLogger(__name__)

## environment variable -> settings field
ENV_VARS = {
    "DATA_DIR": "data_dir",
    "STORAGE_STRATEGY": "storage_strategy",
    "SYNC_RETRY_BASE_SECS": "retry_base_secs",
    "SYNC_RETRY_MAX_SECS": "retry_max_secs",
    "SYNC_MAX_RETRIES": "max_retries",
    "SYNC_REQUEST_TIMEOUT": "request_timeout",
    "SYNC_VERIFY_SSL": "verify_ssl",
}


@dataclass(frozen=True)
class SyncSettings:
    data_dir: str = "./data"
    storage_strategy: StorageStrategy = StorageStrategy.MEMORY_ONLY
    retry_base_secs: float = 30.0
    retry_max_secs: float = 300.0
    max_retries: int = 5
    request_timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        if self.retry_base_secs <= 0 or self.retry_max_secs < self.retry_base_secs:
            raise ValueError(
                "retry delays must satisfy 0 < base (%s) <= max (%s)"
                % (self.retry_base_secs, self.retry_max_secs)
            )
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1, not %s" % self.max_retries)
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SyncSettings":
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            key = key.replace("-", "_")
            if key not in known:
                log.warning("ignoring unknown setting %s", key)
                continue
            kwargs[key] = _coerce(key, known[key].type, value)
        return cls(**kwargs)


def _coerce(key: str, type_: Any, value: Any) -> Any:
    try:
        if type_ in (bool, "bool"):
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("1", "true", "yes", "on"):
                    return True
                if lowered in ("0", "false", "no", "off"):
                    return False
                raise ValueError(value)
            return bool(value)
        if type_ in (int, "int"):
            return int(value)
        if type_ in (float, "float"):
            return float(value)
        if type_ in (StorageStrategy, "StorageStrategy"):
            return StorageStrategy(value)
        return str(value)
    except ValueError as err:
        raise ValueError("invalid value %r for %s" % (value, key)) from err


def config_section(config: Mapping[str, Any], section: str = "default") -> Dict[str, Any]:
    """A section, with everything it ``inherits`` from other sections."""
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    ret.pop("inherits", None)
    return ret


def read_config(fn: Optional[str]) -> Dict[str, Any]:
    """
    Read a json or yaml config file.  A missing file yields an empty
    config, a broken one is logged and ignored.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config/"
        for config_file in (
            f"{cfgdir}/caldav-ics-sync/config.yaml",
            f"{cfgdir}/caldav-ics-sync/config.json",
            "/etc/caldav-ics-sync/config.yaml",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return {}

    try:
        with open(fn, "rb") as config_file:
            raw = config_file.read()
    except FileNotFoundError:
        log.info("no config file found at %s", fn)
        return {}

    try:
        cfg = json.loads(raw)
    except (json.decoder.JSONDecodeError, UnicodeDecodeError):
        try:
            cfg = yaml.safe_load(raw)
        except yaml.YAMLError:
            log.error(
                f"config file {fn} exists but is neither valid json nor yaml.  It will be ignored",
                exc_info=True,
            )
            return {}
    if not isinstance(cfg, dict):
        log.error(f"config file {fn} does not contain a mapping.  It will be ignored")
        return {}
    return cfg


def load_settings(
    fn: Optional[str] = None,
    section: str = "default",
    environ: Optional[Mapping[str, str]] = None,
) -> SyncSettings:
    if environ is None:
        environ = os.environ
    values = config_section(read_config(fn), section)
    for var, key in ENV_VARS.items():
        if environ.get(var):
            values[key] = environ[var]
    return SyncSettings.from_mapping(values)
