# trans_vault/core/exceptions.py
"""
本模块定义了 Trans-Vault 项目中所有自定义的、语义化的异常类型。

存储层内部的异常（NotFound / Transient / VersionConflict）只在
PersistentStore 实现内部抛出与捕获，在边界处被转换为空文件或 ``False``，
上层无需感知具体的存储异常。ContractViolationError 则作为硬错误向上传播。
"""


class TransVaultError(Exception):
    """所有 Trans-Vault 自定义异常的通用基类。"""


class ConfigurationError(TransVaultError):
    """表示在加载、解析或验证配置时发生的错误。"""


class ContractViolationError(TransVaultError, ValueError):
    """
    表示调用方提交了格式错误的数据（例如非字符串的翻译值）。

    这是编程契约层面的错误：立即拒绝，不重试，也不做隐式转换。
    继承自 ValueError 以保持与标准库校验错误的一致性。
    """


class StoreError(TransVaultError):
    """持久化存储操作失败的基类，携带定位问题所需的 unit / locale 上下文。"""

    def __init__(self, message: str, *, unit: str, locale: str) -> None:
        super().__init__(message)
        self.unit = unit
        self.locale = locale


class NotFoundError(StoreError):
    """远端对象不存在。这是预期情况（该单元尚无此语言的翻译）。"""


class TransientStoreError(StoreError):
    """网络错误、5xx、超时或无法解析的载荷。"""


class VersionConflictError(StoreError):
    """乐观并发写入失败：提交的版本令牌与远端当前版本不一致。"""


class BuildRequestError(TransVaultError):
    """向构建服务器发送构建请求失败。"""
