from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from hiveimg.core.exceptions import ConfigError
from hiveimg.core.models import HiveConfig

CONFIG_ENV = "HIVEIMG_CONFIG"
ACCOUNT_ENV = "HIVE_ACCOUNT"
POSTING_KEY_ENV = "HIVE_POSTING_KEY"


def default_config_path() -> Path:
    """Config path: $HIVEIMG_CONFIG, else ~/.hiveimg/config.json."""

    raw = os.environ.get(CONFIG_ENV, "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".hiveimg" / "config.json"


def load_config(path: Optional[str] = None, *, use_env: bool = True) -> HiveConfig:
    """Load the config file, overlaying HIVE_POSTING_KEY from the environment.

    A missing file yields an empty config. Pass `use_env=False` to read the
    file alone, e.g. before rewriting it.
    """

    p = Path(path).expanduser() if path else default_config_path()
    data: dict = {}
    if p.exists():
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read config file {p}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {p} must contain a JSON object")

    try:
        config = HiveConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config file {p}: {e}") from e

    env_key = os.environ.get(POSTING_KEY_ENV, "").strip() if use_env else ""
    if env_key:
        config = config.model_copy(update={"posting_key": env_key})
    return config


def save_config(config: HiveConfig, path: Optional[str] = None) -> Path:
    """Write the config file with owner-only permissions.

    Security notes:
    - The file holds a private key; it is created with mode 0600.
    """

    p = Path(path).expanduser() if path else default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(by_alias=True, exclude_none=True)
    fd = os.open(str(p), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
        f.write("\n")
    os.chmod(p, 0o600)
    return p


def get_account_name(config: Optional[HiveConfig], override: Optional[str] = None) -> Optional[str]:
    """Account precedence: explicit override, then HIVE_ACCOUNT, then config."""

    if override:
        return override
    env_account = os.environ.get(ACCOUNT_ENV, "").strip()
    if env_account:
        return env_account
    if config is not None and config.account:
        return config.account
    return None


def resolve_credentials(
    config: Optional[HiveConfig], account_override: Optional[str] = None
) -> tuple[str, str]:
    """Return (account, posting_key) or raise ConfigError naming what is missing."""

    account = get_account_name(config, account_override)
    if not account:
        raise ConfigError(
            'Account not specified. Use --account, HIVE_ACCOUNT, or configure with "hiveimg config"'
        )
    posting_key = config.posting_key if config is not None else None
    if not posting_key:
        raise ConfigError('Posting key not configured. Run "hiveimg config" or set HIVE_POSTING_KEY.')
    return account, posting_key


def mask_key(key: Optional[str]) -> Optional[str]:
    """Show only the first and last 4 characters of a key."""

    if not key:
        return key
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"
