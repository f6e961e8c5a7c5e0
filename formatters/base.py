# formatters/base.py
"""
[V1.0] 渲染能力接口 (组合而非继承)
- MetadataFormatter: 提交元数据 (Revision / Author / Date)
- DiffFormatter: diff 区块的标记
- CssProvider: 内联样式
[V1.1] 新增 Registry Pattern，diff 风格按名称注册。
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Type

from context import RenderConfig
from models import CommitRecord

logger = logging.getLogger(__name__)

# --- 注册表机制 START ---
# 全局注册表，存储 "diff_style" -> DiffFormatter Class 的映射
DIFF_FORMATTER_REGISTRY: Dict[str, Type["DiffFormatter"]] = {}


def register_diff_formatter(style: str):
    """
    类装饰器：用于将具体的 DiffFormatter 实现类注册到全局注册表中。

    使用示例:
        @register_diff_formatter("html")
        class HtmlDiffFormatter(DiffFormatter):
            ...
    """

    def decorator(cls):
        if style in DIFF_FORMATTER_REGISTRY:
            raise ValueError(
                f"Diff style '{style}' 已经被注册过 ({DIFF_FORMATTER_REGISTRY[style].__name__})"
            )
        DIFF_FORMATTER_REGISTRY[style] = cls
        return cls

    return decorator


# --- 注册表机制 END ---


class MetadataFormatter(ABC):
    """提交元数据的格式化接口"""

    @abstractmethod
    def html_lines(self, record: CommitRecord, config: RenderConfig) -> List[str]:
        """内置渲染：返回 HTML 片段列表"""
        pass

    @abstractmethod
    def text_lines(self, record: CommitRecord) -> List[str]:
        """原始输入：被 metadata 过滤器接管时传给过滤器的纯文本行"""
        pass


class DiffFormatter(ABC):
    """
    diff 区块的标记接口。
    DiffStreamer 负责读取、计数、截断与去重，这里只负责生成标记。
    实例有状态，每次 begin() 重置。
    """

    # 额外需要的样式文件 (templates/ 下)
    css_files: List[str] = []

    @abstractmethod
    def begin(self) -> List[str]:
        pass

    @abstractmethod
    def file_header(self, action: str, path: str, anchor: str) -> List[str]:
        """path 已转义"""
        pass

    @abstractmethod
    def line(self, text: str) -> List[str]:
        """text 为去掉换行符的原始行，由实现负责转义"""
        pass

    @abstractmethod
    def truncated(self, limit: int) -> List[str]:
        pass

    @abstractmethod
    def finish(self) -> List[str]:
        pass


class CssProvider(ABC):
    """内联样式接口 (CSS 属于引擎自身，不经过内容转换)"""

    @abstractmethod
    def css_lines(self) -> List[str]:
        pass


class TemplateCssProvider(CssProvider):
    """从 templates/ 目录读取 CSS 文件"""

    def __init__(self, templates_dir: str, filenames: List[str]):
        self.templates_dir = templates_dir
        self.filenames = filenames

    def css_lines(self) -> List[str]:
        lines: List[str] = []
        for filename in self.filenames:
            css_path = os.path.join(self.templates_dir, filename)
            try:
                with open(css_path, "r", encoding="utf-8") as f:
                    lines.extend(f.readlines())
            except FileNotFoundError:
                logger.error(f"❌ CSS 模板文件未找到: {css_path}")
                lines.append(f"/* CSS 模板文件未找到: {filename} */\n")
        return lines


def get_diff_formatter(style: str) -> DiffFormatter:
    """按名称实例化 DiffFormatter"""
    try:
        formatter_cls = DIFF_FORMATTER_REGISTRY[style]
    except KeyError:
        raise ValueError(
            f"未知的 diff 风格 '{style}' (已注册: {', '.join(DIFF_FORMATTER_REGISTRY)})"
        ) from None
    return formatter_cls()
