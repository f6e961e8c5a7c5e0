# context.py
"""
[V1.0] 渲染配置的数据模型
RenderConfig 由 cli / config_manager 组装一次，渲染期间只读。
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple, Union

from utils import escape_html

DIFF_STYLES = ("html", "color")


class ConfigurationError(ValueError):
    """配置校验失败 (在任何渲染调用之前抛出)"""


def _check_url_template(name: str, template: str) -> str:
    """校验 URL 模板包含且仅包含一个 %s 占位符，返回转义后的模板"""
    if "%s" not in template:
        raise ConfigurationError(f"{name} 缺少 %s 占位符: {template!r}")
    try:
        template % "0"
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} 格式无效 ({template!r}): {e}") from e
    return escape_html(template)


@dataclass
class TicketRule:
    """
    工单系统映射规则。
    两个捕获组: 组 1 为链接文本，组 2 填入 URL；
    一个捕获组: 同时作为链接文本和 URL 参数。
    """

    pattern: str
    url: str
    regex: Pattern = field(init=False, repr=False)
    href: str = field(init=False, repr=False)

    def __post_init__(self):
        try:
            self.regex = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise ConfigurationError(
                f"工单正则无效 ({self.pattern!r}): {e}"
            ) from e
        if self.regex.groups not in (1, 2):
            raise ConfigurationError(
                f"工单正则必须包含 1 或 2 个捕获组，实际为 {self.regex.groups}: {self.pattern!r}"
            )
        self.href = _check_url_template("ticket url", self.url)

    @classmethod
    def parse(cls, value: str) -> "TicketRule":
        """解析命令行格式 'PATTERN=URL' (按第一个 '=' 分割)"""
        pattern, sep, url = value.partition("=")
        if not sep or not pattern or not url:
            raise ConfigurationError(f"工单映射格式应为 PATTERN=URL: {value!r}")
        return cls(pattern, url)


TicketSpec = Union[TicketRule, Tuple[str, str]]


@dataclass
class RenderConfig:
    """
    封装一次渲染所需的全部开关与模板。
    """

    # --- 内容转换 ---
    linkify: bool = False
    wrap_log: bool = False
    revision_url: Optional[str] = None
    author_url: Optional[str] = None
    ticket_map: List[TicketRule] = field(default_factory=list)

    # --- Diff ---
    with_diff: bool = False
    attach_diff: bool = False
    max_diff_length: Optional[int] = None
    diff_style: str = "html"

    # --- 文档 ---
    header: Optional[str] = None
    footer: Optional[str] = None
    css_url: Optional[str] = None
    language: Optional[str] = None
    charset: str = "UTF-8"

    # --- 主题 ---
    subject_prefix: str = ""
    max_sub_length: Optional[int] = None

    # --- 插件 ---
    filters: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    revision_href: Optional[str] = field(default=None, init=False, repr=False)
    author_href: Optional[str] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.revision_url:
            self.revision_href = _check_url_template("revision_url", self.revision_url)
        if self.author_url:
            self.author_href = _check_url_template("author_url", self.author_url)

        self.ticket_map = [self._to_rule(t) for t in self.ticket_map]

        if self.max_diff_length is not None and self.max_diff_length <= 0:
            raise ConfigurationError(
                f"max_diff_length 必须为正整数: {self.max_diff_length}"
            )
        if self.max_sub_length is not None and self.max_sub_length <= 0:
            raise ConfigurationError(
                f"max_sub_length 必须为正整数: {self.max_sub_length}"
            )
        if self.diff_style not in DIFF_STYLES:
            raise ConfigurationError(
                f"未知的 diff 风格 '{self.diff_style}' (可选: {', '.join(DIFF_STYLES)})"
            )
        if not self.charset:
            raise ConfigurationError("charset 不能为空")

    @staticmethod
    def _to_rule(item: TicketSpec) -> TicketRule:
        if isinstance(item, TicketRule):
            return item
        if isinstance(item, str):
            return TicketRule.parse(item)
        if isinstance(item, Sequence) and len(item) == 2:
            return TicketRule(item[0], item[1])
        raise ConfigurationError(f"无法识别的工单映射: {item!r}")

    @property
    def inline_diff(self) -> bool:
        """diff 是否内联在正文中 (而不是作为附件)"""
        return self.with_diff and not self.attach_diff
