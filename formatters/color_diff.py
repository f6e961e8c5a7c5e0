# formatters/color_diff.py
"""
[V1.1] 彩色 diff
每个文件一个 <div class="modfile|addfile|...">，行按类型包在
<ins> / <del> / <span class="cx|info|lines"> 中。
"""
from typing import List, Optional

from utils import escape_html
from .base import DiffFormatter, register_diff_formatter

FILE_CLASSES = {
    "Modified": "modfile",
    "Added": "addfile",
    "Deleted": "delfile",
    "Copied": "copfile",
    "Property changes on": "propset",
}

# 块类型 -> (开始标签, 结束标签)
SPAN_TAGS = {
    "ins": ("<ins>", "</ins>"),
    "del": ("<del>", "</del>"),
    "cx": ('<span class="cx">', "</span>"),
    "info": ('<span class="info">', "</span>"),
}


@register_diff_formatter("color")
class ColorDiffFormatter(DiffFormatter):

    css_files = ["colordiff.css"]

    def __init__(self):
        self._in_file = False
        self._in_span: Optional[str] = None

    def begin(self) -> List[str]:
        self._in_file = False
        self._in_span = None
        return ['</div>\n<div id="patch">\n<h3>Diff</h3>\n']

    def _close_span(self) -> List[str]:
        if self._in_span is None:
            return []
        tag = SPAN_TAGS[self._in_span][1]
        self._in_span = None
        return [tag]

    def _close_file(self) -> List[str]:
        out = self._close_span()
        if self._in_file:
            out.append("</span></pre></div>\n")
            self._in_file = False
        return out

    def _span(self, kind: str, text: str) -> List[str]:
        out: List[str] = []
        if self._in_span != kind:
            out.extend(self._close_span())
            out.append(SPAN_TAGS[kind][0])
            self._in_span = kind
        out.extend([escape_html(text), "\n"])
        return out

    def file_header(self, action: str, path: str, anchor: str) -> List[str]:
        out = self._close_file()
        css_class = FILE_CLASSES.get(action, "modfile")
        out.append(
            f'<a id="{anchor}"></a>\n'
            f'<div class="{css_class}"><h4>{action}: {path}</h4>\n'
            f'<pre class="diff"><span>\n'
        )
        self._in_file = True
        return out

    def line(self, text: str) -> List[str]:
        if text.startswith("====="):
            # svnlook 在文件头后输出的分隔线
            return []
        if text.startswith("--- ") or text.startswith("+++ "):
            return self._span("info", text)
        if text.startswith("@@"):
            out = self._close_span()
            out.extend(['<span class="lines">', escape_html(text), "\n</span>"])
            return out
        if text.startswith("+"):
            return self._span("ins", text)
        if text.startswith("-"):
            return self._span("del", text)
        return self._span("cx", text)

    def truncated(self, limit: int) -> List[str]:
        out = self._close_span()
        out.append(
            f'<span class="lines">@@ Diff output truncated at {limit} characters. @@\n</span>'
        )
        return out

    def finish(self) -> List[str]:
        return self._close_file() + ["</div>\n"]
