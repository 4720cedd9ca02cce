# trans_vault/bootstrap.py
"""
应用引导程序：加载配置并创建已装配好的 DI 容器。
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

import structlog
from dotenv import load_dotenv
from pydantic import ValidationError

from trans_vault.config import TransVaultConfig
from trans_vault.containers import ApplicationContainer
from trans_vault.core.exceptions import ConfigurationError

logger = structlog.get_logger("trans_vault.bootstrap")

EnvMode = Literal["prod", "dev", "test"]


def _load_dotenv_files(env_mode: EnvMode, base_dir: Path) -> list[Path]:
    """根据环境模式，确定并加载相应的 .env 文件（后加载的覆盖先加载的）。"""
    candidates = [base_dir / ".env"]
    if env_mode in ("dev", "test"):
        candidates.append(base_dir / ".env.dev")
    if env_mode == "test":
        candidates.append(base_dir / ".env.test")

    loaded = [p for p in candidates if p.is_file()]
    for path in loaded:
        load_dotenv(path, override=True, encoding="utf-8")
    logger.debug("已加载 dotenv 文件", files=[str(p) for p in loaded])
    return loaded


def create_app_config(
    env_mode: EnvMode = "prod", base_dir: Optional[Path] = None
) -> TransVaultConfig:
    """加载、验证并返回应用配置对象。"""
    _load_dotenv_files(env_mode, base_dir or Path.cwd())
    try:
        config = TransVaultConfig()
    except ValidationError as e:
        raise ConfigurationError(f"配置无效: {e}") from e
    logger.debug(
        "配置已创建",
        env_mode=env_mode,
        store_kind=config.store.kind,
        perform_string_commits=config.perform_string_commits,
    )
    return config


def create_container(
    config: TransVaultConfig, service_name: str = "trans-vault"
) -> ApplicationContainer:
    """创建并装配 DI 容器。资源需由调用方通过 init_resources() 初始化。"""
    container = ApplicationContainer()
    container.pydantic_config.override(config)
    container.service_name.override(service_name)
    return container
