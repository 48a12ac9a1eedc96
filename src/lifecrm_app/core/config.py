"""Configuration loader for database, encryption and logging settings."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

import yaml

from lifecrm_app.core.crypto import CryptoService


@dataclass(frozen=True)
class DatabaseConfig:
    path: str


@dataclass(frozen=True)
class EncryptionConfig:
    key_env: str


@dataclass(frozen=True)
class LoggingConfig:
    retention_days: int
    level: str = "INFO"


@dataclass(frozen=True)
class AuthConfig:
    admin_email: str
    admin_password_env: str


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig
    encryption: EncryptionConfig
    logging: LoggingConfig
    auth: AuthConfig


DEFAULT_CONFIG_REL_PATH = Path("config/app.yaml")
DEFAULT_ENCRYPTION_KEY_ENV = "LIFECRM_ENCRYPTION_KEY"
DEFAULT_ADMIN_PASSWORD_ENV = "LIFECRM_ADMIN_PASSWORD"
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
ENV_FILE_NAMES = (".env.local", ".env")
_RUNTIME_ENV_LOADED = False


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """Parse ``KEY=VALUE`` or ``export KEY=VALUE``, dropping matching quotes."""
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export ") :]
    if "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def _runtime_root() -> Path:
    """Directory that owns generated runtime files."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[3]


def _iter_env_candidates() -> list[Path]:
    """Env files checked for keys, in priority order, without duplicates."""
    roots = [Path.cwd(), _runtime_root()]
    found: list[Path] = []
    for root in roots:
        for candidate in [*(root / name for name in ENV_FILE_NAMES), root / RUNTIME_ENV_REL_PATH]:
            resolved = candidate.resolve()
            if resolved not in found:
                found.append(resolved)
    return found


def _load_env_file(path: Path) -> None:
    if not path.is_file():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(line)
        if parsed and parsed[0] not in os.environ:
            os.environ[parsed[0]] = parsed[1]


def _ensure_env_files_loaded() -> None:
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _iter_env_candidates():
        _load_env_file(path)
    _RUNTIME_ENV_LOADED = True


def ensure_encryption_key(key_env: str, db_path: str | None = None) -> str:
    """Return the field encryption key, generating one for a fresh install.

    An existing database without a key is an error, never a fresh key.
    """
    _ensure_env_files_loaded()
    key = os.getenv(key_env)
    if key:
        return key

    runtime_env = _runtime_root() / RUNTIME_ENV_REL_PATH
    if db_path and Path(db_path).exists():
        raise RuntimeError(
            f"Database {db_path} exists but {key_env} is not set. "
            f"Restore {runtime_env} or export the key."
        )

    key = CryptoService.generate_base64_key()
    os.environ[key_env] = key
    runtime_env.parent.mkdir(parents=True, exist_ok=True)
    with runtime_env.open("a", encoding="utf-8") as file:
        file.write(f"{key_env}='{key}'\n")
    return key


def get_optional_env(name: str) -> str | None:
    """Return an environment value after loading local env files."""
    _ensure_env_files_loaded()
    return os.getenv(name) or None


def resolve_default_config_path() -> Path:
    """Resolve configuration path for source and packaged execution."""
    env_path = os.getenv("LIFECRM_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    candidates: list[Path] = []
    if getattr(sys, "frozen", False):
        candidates.append(Path(sys.executable).resolve().parent / DEFAULT_CONFIG_REL_PATH)
    candidates.append(Path.cwd() / DEFAULT_CONFIG_REL_PATH)
    candidates.append(Path(__file__).resolve().parents[3] / DEFAULT_CONFIG_REL_PATH)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML."""
    path = config_path or resolve_default_config_path()
    with path.open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file) or {}

    db = raw.get("db", {})
    encryption = raw.get("encryption", {})
    logging_section = raw.get("logging", {})
    auth = raw.get("auth", {})
    return AppConfig(
        database=DatabaseConfig(path=str(db.get("path", "lifecrm.db"))),
        encryption=EncryptionConfig(
            key_env=str(encryption.get("key_env", DEFAULT_ENCRYPTION_KEY_ENV)),
        ),
        logging=LoggingConfig(
            retention_days=int(logging_section.get("retention_days", 1095)),
            level=str(logging_section.get("level", "INFO")).upper(),
        ),
        auth=AuthConfig(
            admin_email=str(auth.get("admin_email", "admin@lifecrm.local")),
            admin_password_env=str(auth.get("admin_password_env", DEFAULT_ADMIN_PASSWORD_ENV)),
        ),
    )
