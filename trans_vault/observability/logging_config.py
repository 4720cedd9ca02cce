# trans_vault/observability/logging_config.py
"""
集中配置项目日志系统：structlog ⇄ 标准 logging，并与 Rich 集成。

提供两种输出：
- console：开发环境的面板式人类友好输出（本地时间，配色/对齐/长值折行）。
- json   ：生产环境的结构化日志（ISO-8601 且 UTC），便于日志平台聚合。
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Literal

import structlog
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from structlog.typing import Processor

if TYPE_CHECKING:
    from trans_vault.config import TransVaultConfig


class HybridPanelRenderer:
    """
    structlog 处理器：将日志渲染为 Rich 面板。

    标题使用等宽级别标签；键值对使用固定宽度键列，长值折行显示。
    """

    def __init__(
        self,
        *,
        kv_truncate_at: int = 256,
        show_timestamp: bool = True,
        show_logger_name: bool = True,
        kv_key_width: int = 15,
    ) -> None:
        self._console = Console()
        self._kv_truncate_at = kv_truncate_at
        self._show_timestamp = show_timestamp
        self._show_logger_name = show_logger_name
        self._kv_key_width = kv_key_width
        self._is_first_render = True

        self._level_styles: dict[str, tuple[str, str]] = {
            "debug": ("cyan", "DEBUG   "),
            "info": ("green", "INFO    "),
            "warning": ("yellow", "WARNING "),
            "error": ("bold red", "ERROR   "),
            "critical": ("magenta", "CRITICAL"),
        }

    def __call__(
        self, logger: Any, name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        event_msg = str(event_dict.pop("event", "")).strip()
        if not event_msg:
            return ""

        timestamp = event_dict.pop("timestamp", "")
        level = event_dict.pop("level", "info").lower()
        logger_name = event_dict.pop("logger", "unknown")

        # structlog 注入但不展示的内部字段
        event_dict.pop("_record", None)
        event_dict.pop("_from_structlog", None)

        border_style, level_text = self._level_styles.get(level, ("dim", level.upper()))

        title_parts = [f"[{border_style}]{level_text}[/]"]
        if self._show_logger_name:
            title_parts.append(f"[cyan dim]({logger_name})[/]")
        title = Text.from_markup(" ".join(title_parts))

        renderables: list[RenderableType] = [Text(event_msg, justify="left")]
        if event_dict:
            kv_table = Table(
                show_header=False, show_edge=False, box=None, padding=(0, 1)
            )
            kv_table.add_column(style="dim", justify="right", width=self._kv_key_width)
            kv_table.add_column(style="bright_white", overflow="fold")
            for key, value in sorted(event_dict.items()):
                value_repr = repr(value)
                if len(value_repr) > self._kv_truncate_at or "\n" in value_repr:
                    value_repr = value_repr.strip("'\"")
                kv_table.add_row(f"{key} :", Text(value_repr))
            renderables.append(kv_table)

        subtitle = (
            Text(str(timestamp), style="dim")
            if (self._show_timestamp and timestamp)
            else None
        )

        with self._console.capture() as capture:
            self._console.print(
                Panel(
                    Group(*renderables),
                    title=title,
                    border_style=border_style,
                    subtitle=subtitle,
                    subtitle_align="right",
                    expand=False,
                    title_align="left",
                )
            )
        rendered = capture.get().rstrip()

        if self._is_first_render and rendered:
            self._is_first_render = False
            return f"\n{rendered}"
        return rendered


def setup_logging(
    *,
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    service: str | None = None,
    root_level: str | None = None,
    silence_noisy_libs: bool = True,
) -> None:
    """
    配置全局 structlog 日志系统。

    Args:
        log_level: 应用 logger 的最低级别（DEBUG/INFO/WARNING/ERROR/CRITICAL）。
        log_format: 'console'（开发美观输出）或 'json'（生产结构化输出）。
        service: 统一绑定到日志的服务名（通过 contextvars 注入）。
        root_level: 根 logger 级别；默认 WARNING 以降低第三方噪声。
        silence_noisy_libs: 是否下调 httpx/httpcore 等噪声 logger 的级别。
    """
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]

    if log_format == "json":
        timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    else:
        timestamper = structlog.processors.TimeStamper(
            fmt="%Y-%m-%d %H:%M:%S", utc=False
        )

    structlog.configure(
        processors=[
            *pre_chain,
            timestamper,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    final_renderer: Processor
    if log_format == "console":
        final_renderer = HybridPanelRenderer()
    else:
        final_renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=final_renderer,
        foreign_pre_chain=[*pre_chain, timestamper],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((root_level or "WARNING").upper())

    app_logger = logging.getLogger("trans_vault")
    app_logger.setLevel(log_level.upper())
    app_logger.propagate = True

    structlog.contextvars.clear_contextvars()
    if service:
        structlog.contextvars.bind_contextvars(service=service)

    if silence_noisy_libs:
        for noisy in ("httpx", "httpcore", "asyncio"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger("trans_vault.logging_config").info(
        "日志系统已配置完成。",
        log_format=log_format,
        app_log_level=log_level.upper(),
        service=service,
    )


def setup_logging_from_config(
    cfg: "TransVaultConfig", *, service: str = "trans-vault"
) -> None:
    """根据 TransVaultConfig 一键初始化日志系统。"""
    setup_logging(
        log_level=cfg.logging.level,
        log_format=cfg.logging.format,
        service=service,
    )
