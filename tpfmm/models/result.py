"""
操作结果模型

核心与界面层之间的边界不抛出异常，而是返回 OperationResult。
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from tpfmm.exceptions import ErrorKind, TpfModManagerError

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """操作执行结果"""

    success: bool = True
    data: Optional[T] = None
    error: Optional[TpfModManagerError] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def kind(self) -> Optional[ErrorKind]:
        """失败时的错误类别"""
        return self.error.kind if self.error else None

    @classmethod
    def ok(cls, data: Optional[T] = None, warnings: Optional[List[str]] = None):
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: TpfModManagerError):
        return cls(success=False, error=error)

    def unwrap(self) -> Optional[T]:
        """成功时返回数据，失败时抛出携带的异常"""
        if not self.success:
            assert self.error is not None
            raise self.error
        return self.data

    def __bool__(self) -> bool:
        return self.success
