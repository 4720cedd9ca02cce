# trans_vault/observability/__init__.py
from .logging_config import HybridPanelRenderer, setup_logging, setup_logging_from_config

__all__ = ["HybridPanelRenderer", "setup_logging", "setup_logging_from_config"]
