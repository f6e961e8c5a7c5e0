# hooks/base.py
from abc import ABC
from enum import Enum
from typing import Iterable, List

from context import RenderConfig


class Stage(Enum):
    """
    渲染阶段的过滤键 (固定集合)
    """

    DOCUMENT_OPEN = "document-open"
    BODY_OPEN = "body-open"
    CSS = "css"
    METADATA = "metadata"
    LOG_MESSAGE = "log-message"
    FILE_LISTS = "file-lists"
    DIFF = "diff"
    END = "end"

    @property
    def method_name(self) -> str:
        """BaseFilter 子类中对应的方法名，例如 log-message -> log_message"""
        return self.value.replace("-", "_")

    @property
    def overridable(self) -> bool:
        """内容阶段可被完全接管；结构阶段只能做后置过滤"""
        return self in CONTENT_STAGES


CONTENT_STAGES = frozenset(
    [Stage.METADATA, Stage.LOG_MESSAGE, Stage.FILE_LISTS, Stage.DIFF]
)


class BaseFilter(ABC):
    """
    [V1.0] 过滤器插件基类
    子类只需实现关心的阶段方法；实现了哪个方法，就注册到哪个阶段。
    每个方法接收上一个过滤器的输出，返回新的行列表。
    """

    # 插件名称 (--filter 使用此名称，建议子类覆盖)
    name: str = "BaseFilter"

    def __init__(self, config: RenderConfig):
        self.config = config

    def document_open(self, lines: List[str]) -> List[str]:
        """[结构阶段] <html>/<head> 部分"""
        return lines

    def body_open(self, lines: List[str]) -> List[str]:
        """[结构阶段] <div id="msg"> 与 header"""
        return lines

    def css(self, lines: List[str]) -> List[str]:
        """[结构阶段] 内联 CSS"""
        return lines

    def metadata(self, lines: List[str]) -> List[str]:
        """
        [内容阶段] 接管后收到纯文本元数据行 ("Revision: 7\\n" ...)，
        返回值将原样写出。
        """
        return lines

    def log_message(self, lines: List[str]) -> List[str]:
        """
        [内容阶段] 接管后收到原始日志行 (未转义)，
        过滤器需自行负责转义与链接化。
        """
        return lines

    def file_lists(self, lines: List[str]) -> List[str]:
        """[内容阶段] 接管后收到纯文本文件列表"""
        return lines

    def diff(self, lines: Iterable) -> Iterable:
        """[内容阶段] 接管后收到 diff 行迭代器"""
        return lines

    def end(self, lines: List[str]) -> List[str]:
        """[结构阶段] footer 与结束标签"""
        return lines
