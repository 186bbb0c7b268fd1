"""
attachment_ftp configuration. Reads Django settings and the per-environment
YAML file holding the FTP connection details.

Example file (config/attachment_ftp.yml):

    development:
      server: ftp.example.com
      login: uploader
      password: ${FTP_PASSWORD}
      base_upload_path: /var/www/uploads
      base_url: http://files.example.com/uploads

    production:
      server: ftp.example.com
      login: uploader
      password: ${FTP_PASSWORD}
      base_upload_path: /var/www/uploads
      base_url: https://files.example.com/uploads
      read_only: false
"""
import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

import yaml
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .exceptions import ConfigFileNotFoundError
from .utils.logging import masked_ftp_config

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "development"
DEFAULT_FTP_PORT = 21
REQUIRED_KEYS = ("server", "login", "password", "base_upload_path")
TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")

# $$ escapes a literal dollar; ${NAME} reads the environment
_ENV_MARKER_RE = re.compile(r"\$\$|\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class FtpConfig:
    """
    Connection and layout settings for one environment.
    """

    server: str
    login: str
    password: str
    base_upload_path: str
    base_url: str = ""
    read_only: bool = False
    port: int = DEFAULT_FTP_PORT
    passive: bool = True
    timeout: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "server": self.server,
            "login": self.login,
            "password": self.password,
            "base_upload_path": self.base_upload_path,
            "base_url": self.base_url,
            "read_only": self.read_only,
            "port": self.port,
            "passive": self.passive,
            "timeout": self.timeout,
        }


def get_config_path() -> str:
    """
    Return the configured YAML path, defaulting to
    {BASE_DIR}/config/attachment_ftp.yml.
    """
    path = getattr(settings, "ATTACHMENT_FTP_CONFIG_PATH", None)
    if path:
        return str(path)
    base_dir = getattr(settings, "BASE_DIR", None) or os.getcwd()
    return os.path.join(str(base_dir), "config", "attachment_ftp.yml")


def get_environment() -> str:
    """
    Return the environment whose section of the YAML file is used.
    """
    return (
        getattr(settings, "ATTACHMENT_FTP_ENV", None)
        or os.environ.get("DJANGO_ENV")
        or DEFAULT_ENVIRONMENT
    )


def get_tempfile_dir() -> Optional[str]:
    """
    Directory for downloaded and pending-upload temp files; None means the
    system default.
    """
    return getattr(settings, "ATTACHMENT_FTP_TEMPFILE_PATH", None)


def validate_on_startup() -> bool:
    return getattr(settings, "ATTACHMENT_FTP_VALIDATE_ON_STARTUP", True)


def _read_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise ConfigFileNotFoundError(
            f"FTP config file could not be read: {path} ({exc})"
        ) from exc

    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ImproperlyConfigured(
            f"FTP config file {path} must contain a mapping of environments"
        )
    return data


def expand_env_markers(value: Any) -> Any:
    """
    Replace ${NAME} in a string value with the environment variable NAME.

    Only the braced form is expanded, so a literal '$' in a password is kept.
    Unset variables are left as written; '$$' yields a single '$'.

    Example:
        expand_env_markers("${FTP_PASSWORD}")  # value of FTP_PASSWORD
        expand_env_markers("pa$$${SUFFIX}")    # 'pa$' + value of SUFFIX
    """
    if not isinstance(value, str):
        return value

    def _replace(match):
        name = match.group(1)
        if name is None:
            return "$"
        return os.environ.get(name, match.group(0))

    return _ENV_MARKER_RE.sub(_replace, value)


def _as_bool(value: Any, key: str, source: str = "") -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ImproperlyConfigured(
        f"FTP config {source} has a non-boolean value for {key}: {value!r}"
    )


def build_ftp_config(values: Dict[str, Any], source: str = "") -> FtpConfig:
    """
    Validate a raw environment section and build an FtpConfig.

    Raises:
        ImproperlyConfigured: If a required key is missing or empty
    """
    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise ImproperlyConfigured(
            f"FTP config {source} is missing required keys: "
            f"{', '.join(missing)}"
        )

    timeout = values.get("timeout")
    return FtpConfig(
        server=str(values["server"]),
        login=str(values["login"]),
        password=str(values["password"]),
        base_upload_path=str(values["base_upload_path"]),
        base_url=str(values.get("base_url") or ""),
        read_only=_as_bool(values.get("read_only", False), "read_only", source),
        port=int(values.get("port") or DEFAULT_FTP_PORT),
        passive=_as_bool(values.get("passive", True), "passive", source),
        timeout=float(timeout) if timeout is not None else None,
    )


def load_ftp_config(
    path: Optional[str] = None,
    environment: Optional[str] = None,
) -> FtpConfig:
    """
    Load the FTP config for one environment from the YAML file.

    Args:
        path: YAML file path (defaults to ATTACHMENT_FTP_CONFIG_PATH)
        environment: Section name (defaults to ATTACHMENT_FTP_ENV)

    Returns:
        FtpConfig instance

    Raises:
        ConfigFileNotFoundError: If the file cannot be read
        ImproperlyConfigured: If the section or required keys are missing
    """
    path = path or get_config_path()
    environment = environment or get_environment()

    data = _read_config_file(path)
    section = data.get(environment)
    if not isinstance(section, dict):
        raise ImproperlyConfigured(
            f"FTP config file {path} has no '{environment}' section"
        )

    section = {key: expand_env_markers(value) for key, value in section.items()}
    config = build_ftp_config(section, source=f"{path}[{environment}]")
    logger.debug(
        f"Loaded FTP config {path}[{environment}]: "
        f"{masked_ftp_config(config)}"
    )
    return config


@lru_cache(maxsize=None)
def _cached_config(path: str, environment: str) -> FtpConfig:
    return load_ftp_config(path, environment)


def get_ftp_config(path: Optional[str] = None) -> FtpConfig:
    """
    Return the process-wide FTP config, loading it once per
    (path, environment).
    """
    return _cached_config(path or get_config_path(), get_environment())


def clear_config_cache():
    """
    Drop cached configs, e.g. after settings change in tests.
    """
    _cached_config.cache_clear()
