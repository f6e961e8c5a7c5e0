# plugins/markdown_log.py
import logging
import re
from typing import List

import markdown

from hooks.base import BaseFilter

logger = logging.getLogger(__name__)

# r123 / [123] -> changeset，#45 -> ticket
CHANGESET_RE = re.compile(r"(?<![\w/\[])(?:r(\d+)|\[(\d+)\])(?![\w(])")
TICKET_RE = re.compile(r"(?<![\w&/#])#(\d+)\b")


class MarkdownLogPlugin(BaseFilter):
    """
    [插件] Markdown 日志
    接管 log-message 阶段，将按 Markdown 书写的提交日志渲染为 HTML。
    若配置了 extra["trac_url"]，r123 / [123] 与 #45 会链接到对应的
    changeset / ticket 页面。
    原始 HTML 不会被放行，统一转义。
    """

    name = "Markdown"

    def _link_trac(self, text: str) -> str:
        trac_url = (self.config.extra.get("trac_url") or "").rstrip("/")
        if not trac_url:
            return text

        def _changeset(match):
            rev = match.group(1) or match.group(2)
            return f"[{match.group(0)}]({trac_url}/changeset/{rev})"

        text = CHANGESET_RE.sub(_changeset, text)
        return TICKET_RE.sub(
            lambda m: f"[{m.group(0)}]({trac_url}/ticket/{m.group(1)})", text
        )

    def log_message(self, lines: List[str]) -> List[str]:
        md = markdown.Markdown(extensions=["fenced_code", "tables", "sane_lists", "nl2br"])
        # 禁用原始 HTML
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")

        html = md.convert(self._link_trac("\n".join(lines)))
        logger.debug(f"📝 [Markdown] 日志已渲染 ({len(html)} 字符)")
        return [html]
