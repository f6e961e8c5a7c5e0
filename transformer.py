# transformer.py
"""
[V1.0] 日志内容转换器
对已转义的文本依次执行：链接化 (邮箱/URL) -> 版本号链接 -> 工单映射。
所有规则在 RenderConfig 构造时已校验，transform 本身不会失败。
"""
import re

from context import RenderConfig

# 正则改编自 "Mastering Regular Expressions" 2ed., pp 70-75
EMAIL_RE = re.compile(
    r"\b(\w[-.\w]*@[-a-z0-9]+(?:\.[-a-z0-9]+)*\.[-a-z0-9]+)\b",
    re.IGNORECASE,
)

URL_RE = re.compile(
    r"\b([a-z0-9]+://[-a-z0-9]+(?:\.[-a-z0-9]+)*\.[-a-z0-9]+\b"
    r"(?:/(?:[-a-z0-9_:@?=+,.!/~*'%$]|&amp;)*(?<![.,?!]))?)",
    re.IGNORECASE,
)

REVISION_RE = re.compile(r"\b(rev(?:ision)?\s*#?\s*(\d+))\b", re.IGNORECASE)

NON_WORD_RE = re.compile(r"[^\w]")


def anchor_id(text: str) -> str:
    """去掉所有非字母/数字/下划线字符，生成锚点 id"""
    return NON_WORD_RE.sub("", text)


class ContentTransformer:
    """
    无状态的规则引擎。顺序固定，调用方声明的工单规则顺序不可改变。
    """

    def __init__(self, config: RenderConfig):
        self.config = config

    def transform(self, text: str) -> str:
        if self.config.linkify:
            text = self.linkify(text)
        if self.config.revision_href:
            text = self.link_revisions(text)
        if self.config.ticket_map:
            text = self.link_tickets(text)
        return text

    @staticmethod
    def linkify(text: str) -> str:
        # 先处理邮箱；生成的 mailto: 链接不含 "://"，URL 规则不会再次匹配
        text = EMAIL_RE.sub(r'<a href="mailto:\1">\1</a>', text)
        return URL_RE.sub(r'<a href="\1">\1</a>', text)

    def link_revisions(self, text: str) -> str:
        href = self.config.revision_href

        def _replace(match):
            return '<a href="%s">%s</a>' % (href % match.group(2), match.group(1))

        return REVISION_RE.sub(_replace, text)

    def link_tickets(self, text: str) -> str:
        for rule in self.config.ticket_map:

            def _replace(match, href=rule.href):
                label = match.group(1) or match.group(0)
                value = match.group(2) if match.re.groups > 1 else None
                return '<a href="%s">%s</a>' % (href % (value or label), label)

            text = rule.regex.sub(_replace, text)
        return text
