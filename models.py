# models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Union


class ChangeKind(Enum):
    """文件变更类型 (对应 svnlook changed 的第一列)"""

    MODIFIED = "U"
    ADDED = "A"
    DELETED = "D"
    PROPERTY_CHANGED = "_"

    @property
    def label(self) -> str:
        return FILE_LABELS[self]


# 文件列表的输出顺序固定
CHANGE_KIND_ORDER = [
    ChangeKind.MODIFIED,
    ChangeKind.ADDED,
    ChangeKind.DELETED,
    ChangeKind.PROPERTY_CHANGED,
]

FILE_LABELS = {
    ChangeKind.MODIFIED: "Modified Paths",
    ChangeKind.ADDED: "Added Paths",
    ChangeKind.DELETED: "Removed Paths",
    ChangeKind.PROPERTY_CHANGED: "Property Changed",
}

DiffSource = Union[Iterable, Callable[[], Iterable]]


@dataclass(frozen=True)
class CommitRecord:
    """提交数据模型 (一次渲染调用独占)"""

    revision: str
    author: str
    date: str
    message: List[str] = field(default_factory=list)
    files: Dict[ChangeKind, List[str]] = field(default_factory=dict)
    # 惰性的 diff 行来源；可以是可迭代对象，也可以是返回可迭代对象的无参函数
    diff: Optional[DiffSource] = None

    @property
    def has_files(self) -> bool:
        return any(self.files.get(kind) for kind in CHANGE_KIND_ORDER)

    @property
    def has_diff(self) -> bool:
        return self.diff is not None

    def open_diff(self) -> Iterable:
        """打开 diff 来源。仅在 diff 阶段调用。"""
        if self.diff is None:
            return iter(())
        if callable(self.diff):
            return self.diff()
        return self.diff

    def first_line(self) -> str:
        for line in self.message:
            if line.strip():
                return line.strip()
        return ""
