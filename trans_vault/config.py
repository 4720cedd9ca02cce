# trans_vault/config.py
"""
Trans-Vault 配置（Pydantic v2）

- 顶层 `TransVaultConfig` 从环境变量（前缀 TRANSVAULT_，嵌套分隔符 __）
  与 .env 文件加载。
- 两个管理开关 `perform_string_commits` 与 `include_a11y_keys`
  对核心逻辑而言是只读输入。
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ===================== 子模型 =====================


class StoreSettings(BaseModel):
    """长期存储（外部内容仓库）配置。"""

    kind: Literal["github", "memory"] = Field(
        default="memory", description="github：GitHub contents API；memory：进程内存储"
    )
    api_url: str = Field(default="https://api.github.com")
    owner: Optional[str] = Field(default=None)
    repo: Optional[str] = Field(default=None)
    branch: str = Field(default="main")
    token: Optional[SecretStr] = Field(default=None)
    timeout: float = Field(default=30.0, gt=0)
    conflict_retry_delay: float = Field(
        default=0.5, ge=0, description="版本冲突后重试前的等待时间（秒）"
    )

    @field_validator("branch")
    @classmethod
    def _reject_master(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("存储分支名不能为空")
        if v == "master":
            raise ValueError("不再支持分支名 'master'，请更新配置")
        return v

    @model_validator(mode="after")
    def _check_github_credentials(self) -> "StoreSettings":
        if self.kind == "github":
            missing = [
                name
                for name in ("owner", "repo", "token")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(
                    f"store.kind 为 'github' 时必须提供: {', '.join(missing)}"
                )
        return self


class BuildSettings(BaseModel):
    """构建服务器配置。"""

    server_url: Optional[str] = Field(default=None)
    auth_code: Optional[SecretStr] = Field(default=None)
    send_requests: bool = Field(default=False)
    timeout: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _check_server_url(self) -> "BuildSettings":
        if self.send_requests and not self.server_url:
            raise ValueError("build.send_requests 为 True 时必须提供 server_url")
        return self


class StatsCacheSettings(BaseModel):
    dirty_grace_seconds: int = Field(
        default=600, ge=0, description="脏条目在被强制重算前仍可返回的时间窗口（秒）"
    )
    maxsize: int = Field(default=4096, ge=1)

    @property
    def dirty_grace_ms(self) -> int:
        return self.dirty_grace_seconds * 1000


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["console", "json"] = Field(default="console")


# ===================== 顶层配置 =====================
class TransVaultConfig(BaseSettings):
    """
    Trans-Vault 核心配置模型。
    """

    # --- 管理开关 ---
    perform_string_commits: bool = Field(
        default=True, description="为 False 时不真正写入长期存储（调试/演练模式）"
    )
    include_a11y_keys: bool = Field(
        default=False, description="是否处理无障碍（a11y.*）专用字符串键"
    )
    source_locale: str = Field(
        default="en", description="源语言，永远不会以翻译文件的形式存储"
    )

    # --- 领域子配置 ---
    store: StoreSettings = Field(default_factory=StoreSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    stats_cache: StatsCacheSettings = Field(default_factory=StatsCacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # --- Pydantic v2 设置 ---
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="TRANSVAULT_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )
