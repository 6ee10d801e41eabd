"""
L1 Domain — sing-box config.json generation and persistence.

The config is always handled as structured data: parsed into
``SingBoxConfig``, modified, and serialized back.  Writes are atomic
(temp file in the same directory, then rename) and leave the file at
mode 0644.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import secrets
import tempfile
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from hostprep.core.errors import ConfigError
from hostprep.core.models.singbox import DEFAULT_METHOD, Inbound, SingBoxConfig
from hostprep.core.services.provision.data.constants import PASSWORD_BYTES

logger = logging.getLogger(__name__)

CONFIG_MODE = 0o644


def generate_password(nbytes: int = PASSWORD_BYTES) -> str:
    """Random pre-shared key, base64 encoded.

    16 bytes is the key length 2022-blake3-aes-128-gcm expects.
    """
    return base64.b64encode(secrets.token_bytes(nbytes)).decode("ascii")


def build_config(port: int, password: str, *, method: str = DEFAULT_METHOD) -> SingBoxConfig:
    """Build the default single-inbound shadowsocks config."""
    return SingBoxConfig(
        inbounds=[Inbound(listen_port=port, password=password, method=method)],
    )


def load_config(path: Path) -> SingBoxConfig:
    """Parse an existing config.json.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or does not
            match the expected schema.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    try:
        return SingBoxConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Unexpected sing-box config in {path}: {e}") from e


def save_config(config: SingBoxConfig, path: Path) -> None:
    """Serialize ``config`` to ``path`` (atomic write, mode 0644).

    Raises:
        ConfigError: If the file or its directory cannot be written.
    """
    content = json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".config_", suffix=".tmp")
    except OSError as exc:
        raise ConfigError(f"Cannot write {path}: {exc}") from exc

    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp, CONFIG_MODE)
        tmp.replace(path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write {path}: {exc}") from exc
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    logger.info("Wrote sing-box config %s", path)


def ensure_config(
    path: Path,
    *,
    port_factory: Callable[[], int],
    password_factory: Callable[[], str] = generate_password,
) -> tuple[SingBoxConfig, bool]:
    """Return the config at ``path``, creating it only when missing.

    An existing file is never regenerated, so the credential pair
    survives reinstalls and updates.

    Returns:
        ``(config, created)``.
    """
    if path.is_file():
        logger.info("Keeping existing sing-box config %s", path)
        return load_config(path), False

    config = build_config(port_factory(), password_factory())
    save_config(config, path)
    return config, True
