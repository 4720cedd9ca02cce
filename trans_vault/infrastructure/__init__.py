# trans_vault/infrastructure/__init__.py
"""外部系统（内容仓库、构建服务器）的适配器实现。"""

from .base_store import BaseContentStore, commit_message_for, file_path_for
from .build_requester import HttpBuildRequester, create_build_client
from .github_store import GitHubContentStore, create_github_client
from .memory_store import InMemoryStore

__all__ = [
    "BaseContentStore",
    "GitHubContentStore",
    "HttpBuildRequester",
    "InMemoryStore",
    "commit_message_for",
    "create_build_client",
    "create_github_client",
    "file_path_for",
]
