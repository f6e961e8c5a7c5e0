# formatters/html.py
"""
默认的 HTML 格式化实现。
"""
from typing import List

from context import RenderConfig
from models import CommitRecord
from utils import escape_html
from .base import DiffFormatter, MetadataFormatter, register_diff_formatter


class HtmlMetadataFormatter(MetadataFormatter):
    """以 <dl> 输出 Revision / Author / Date"""

    def html_lines(self, record: CommitRecord, config: RenderConfig) -> List[str]:
        rev = escape_html(record.revision)
        if config.revision_href:
            rev = '<a href="%s">%s</a>' % (config.revision_href % rev, rev)

        user = escape_html(record.author)
        if config.author_href:
            user = '<a href="%s">%s</a>' % (config.author_href % user, user)

        return [
            "<dl>\n",
            f"<dt>Revision</dt> <dd>{rev}</dd>\n",
            f"<dt>Author</dt> <dd>{user}</dd>\n",
            f"<dt>Date</dt> <dd>{escape_html(record.date)}</dd>\n",
            "</dl>\n\n",
        ]

    def text_lines(self, record: CommitRecord) -> List[str]:
        return [
            f"Revision: {record.revision}\n",
            f"Author:   {record.author}\n",
            f"Date:     {record.date}\n",
            "\n",
        ]


@register_diff_formatter("html")
class HtmlDiffFormatter(DiffFormatter):
    """整段 diff 放在一个 <pre> 中，文件头输出为锚点"""

    def begin(self) -> List[str]:
        # 关闭 msg 容器，diff 位于其后
        return ['</div>\n<div id="patch"><pre>\n']

    def file_header(self, action: str, path: str, anchor: str) -> List[str]:
        return [f'<a id="{anchor}">{action}: {path}</a>\n']

    def line(self, text: str) -> List[str]:
        return [escape_html(text), "\n"]

    def truncated(self, limit: int) -> List[str]:
        return [f"\n@@ Diff output truncated at {limit} characters. @@\n"]

    def finish(self) -> List[str]:
        return ["</pre></div>\n"]
