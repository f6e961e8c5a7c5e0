# report_builder.py
"""
[V1.0] 通知文档渲染器
按固定顺序执行各渲染阶段，并在每个阶段边界询问过滤器链：
- 内容阶段 (metadata / log-message / file-lists / diff): 有过滤器时完全接管
- 结构阶段 (document-open / body-open / css / end): 只做后置过滤
"""
import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from context import RenderConfig
from diff_streamer import DiffStats, DiffStreamer, close_quietly
from formatters import (
    CssProvider,
    DiffFormatter,
    HtmlMetadataFormatter,
    MetadataFormatter,
    TemplateCssProvider,
    get_diff_formatter,
)
from hooks import FilterChain, Stage
from models import CHANGE_KIND_ORDER, ChangeKind, CommitRecord
from transformer import ContentTransformer, anchor_id
from utils import escape_html

logger = logging.getLogger(__name__)

PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


@dataclass
class RenderResult:
    """一次渲染的结果摘要 (文档本身已写入输出流)"""

    subject: str
    diff_stats: Optional[DiffStats] = None


def build_subject(record: CommitRecord, config: RenderConfig) -> str:
    """邮件主题: '<前缀>[<版本号>] <日志首行>'，按 max_sub_length 截断"""
    subject = f"{config.subject_prefix}[{record.revision}] {record.first_line()}".rstrip()
    if config.max_sub_length and len(subject) > config.max_sub_length:
        subject = subject[: config.max_sub_length]
    return subject


def _markup_or_escape(text: str) -> str:
    """以 '<' 开头视为已格式化的 HTML，否则转义"""
    return text if text.startswith("<") else escape_html(text)


class Renderer:
    """
    渲染器：组合 MetadataFormatter / DiffFormatter / CssProvider，
    RenderConfig 与 FilterChain 在渲染期间只读，可在多次顺序调用间复用。
    """

    def __init__(
        self,
        config: RenderConfig,
        filters: Optional[FilterChain] = None,
        metadata_formatter: Optional[MetadataFormatter] = None,
        diff_formatter: Optional[DiffFormatter] = None,
        css_provider: Optional[CssProvider] = None,
        templates_dir: Optional[str] = None,
    ):
        self.config = config
        self.filters = filters or FilterChain()
        self.templates_dir = templates_dir or GlobalConfig.TEMPLATES_DIR
        self.metadata_formatter = metadata_formatter or HtmlMetadataFormatter()
        self.diff_formatter = diff_formatter or get_diff_formatter(config.diff_style)
        self.css_provider = css_provider or TemplateCssProvider(
            self.templates_dir, ["notify.css"] + list(self.diff_formatter.css_files)
        )
        self.transformer = ContentTransformer(config)
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    # ------------------------------------------------------------------
    # 入口
    # ------------------------------------------------------------------

    def render(self, record: CommitRecord, out) -> RenderResult:
        """将完整文档写入 out；写入失败 (OSError) 直接向上抛出"""
        subject = build_subject(record, self.config)
        logger.info(f"🎨 正在渲染 r{record.revision} 的通知文档")

        self.start_html(subject, out)
        self.start_body(out)
        self.output_metadata(record, out)
        self.output_log_message(record, out)
        self.output_file_lists(record, out)

        diff_stats = None
        container_open = True
        if self.config.inline_diff and record.has_diff:
            diff_stats, closed = self.output_diff(record, out)
            container_open = not closed

        self.end_body(out, container_open=container_open)
        return RenderResult(subject=subject, diff_stats=diff_stats)

    # ------------------------------------------------------------------
    # 结构阶段 (后置过滤)
    # ------------------------------------------------------------------

    def _overridden(self, stage: Stage) -> bool:
        """内容阶段注册了过滤器时，内置逻辑被完全接管"""
        return stage.overridable and self.filters.registered(stage)

    def _post_filter(self, stage: Stage, lines: List[str], out) -> None:
        if stage.overridable:
            raise ValueError(f"{stage.value} 是内容阶段，不能做后置过滤")
        if self.filters.registered(stage):
            lines = self.filters.apply(stage, lines)
        self._write(out, lines)

    def start_html(self, subject: str, out) -> None:
        template = self.env.get_template("document_open.html.j2")
        html = template.render(
            language=self.config.language,
            charset=self.config.charset.lower(),
            css_url=self.config.css_url,
            subject=subject,
        )
        self._post_filter(Stage.DOCUMENT_OPEN, html.splitlines(keepends=True), out)

    def start_body(self, out) -> None:
        out.write('<style type="text/css"><!--\n')
        self._post_filter(Stage.CSS, self.css_provider.css_lines(), out)
        out.write("--></style>\n")

        lines = ['<div id="msg">\n']
        if self.config.header:
            lines.extend(
                ['<div id="header">', _markup_or_escape(self.config.header), "</div>\n"]
            )
        self._post_filter(Stage.BODY_OPEN, lines, out)

    def end_body(self, out, container_open: bool = True) -> None:
        lines = []
        if self.config.footer:
            lines.extend(
                ['<div id="footer">', _markup_or_escape(self.config.footer), "</div>\n"]
            )
        if container_open:
            lines.append("\n</div>")
        lines.append("\n</body>\n</html>\n")
        self._post_filter(Stage.END, lines, out)

    # ------------------------------------------------------------------
    # 内容阶段 (可被完全接管)
    # ------------------------------------------------------------------

    def output_metadata(self, record: CommitRecord, out) -> None:
        if self._overridden(Stage.METADATA):
            raw = self.metadata_formatter.text_lines(record)
            self._write(out, self.filters.apply(Stage.METADATA, raw))
            return
        self._write(out, self.metadata_formatter.html_lines(record, self.config))

    def output_log_message(self, record: CommitRecord, out) -> None:
        out.write("<h3>Log Message</h3>\n")

        if self._overridden(Stage.LOG_MESSAGE):
            # 过滤器负责转义、链接化与工单链接
            lines = self.filters.apply(Stage.LOG_MESSAGE, list(record.message))
            msg = "\n".join(line.rstrip("\n") for line in lines)
            self._write(out, ['<div id="logmsg">\n', msg, "\n</div>\n\n"])
            return

        msg = self.transformer.transform(escape_html("\n".join(record.message)))
        if self.config.wrap_log:
            paragraphs = [p for p in PARAGRAPH_SPLIT_RE.split(msg) if p.strip()]
            body = "\n\n".join(f"<p>{p}</p>" for p in paragraphs)
            self._write(out, ['<div id="logmsg">\n', body, "\n</div>\n\n"])
        else:
            out.write(f"<pre>{msg}</pre>\n\n")

    def output_file_lists(self, record: CommitRecord, out) -> None:
        if not record.has_files:
            return

        if self._overridden(Stage.FILE_LISTS):
            self._write(
                out, self.filters.apply(Stage.FILE_LISTS, self._file_list_text(record))
            )
            return

        link = self.config.inline_diff
        for kind in CHANGE_KIND_ORDER:
            paths = record.files.get(kind)
            if not paths:
                continue
            out.write(f"<h3>{kind.label}</h3>\n<ul>\n")
            for path in paths:
                file = escape_html(path)
                if not link:
                    out.write(f"  <li>{file}</li>\n")
                elif file.endswith("/") and kind is not ChangeKind.PROPERTY_CHANGED:
                    # 目录不链接 (属性变更除外)
                    out.write(f"<li>{file}</li>\n")
                else:
                    out.write(f'<li><a href="#{anchor_id(file)}">{file}</a></li>\n')
            out.write("</ul>\n\n")

    @staticmethod
    def _file_list_text(record: CommitRecord) -> List[str]:
        lines = []
        for kind in CHANGE_KIND_ORDER:
            paths = record.files.get(kind)
            if not paths:
                continue
            lines.append(f"\n{kind.label}:\n")
            lines.append("-" * (len(kind.label) + 1) + "\n")
            lines.extend(f"    {path}\n" for path in paths)
        return lines

    def output_diff(self, record: CommitRecord, out):
        """
        返回 (DiffStats 或 None, 是否已关闭 msg 容器)。
        无论成功、截断还是写入失败，diff 来源都会被关闭。
        """
        source = record.open_diff()

        if self._overridden(Stage.DIFF):
            try:
                self._write(out, self.filters.apply(Stage.DIFF, iter(source)))
            finally:
                close_quietly(source)
            return None, False

        streamer = DiffStreamer(
            formatter=self.diff_formatter,
            max_length=self.config.max_diff_length,
            charset=self.config.charset,
        )
        return streamer.stream(source, out), True

    @staticmethod
    def _write(out, lines) -> None:
        for line in lines:
            out.write(line)


def render(
    record: CommitRecord,
    config: RenderConfig,
    filters: Optional[FilterChain],
    out,
) -> RenderResult:
    """便捷函数：构造默认 Renderer 并渲染一次"""
    return Renderer(config, filters).render(record, out)


def save_html_report(html_content: str, output_dir: str, revision: str) -> Optional[str]:
    """保存 HTML 文档到文件"""
    filename = f"{GlobalConfig.OUTPUT_FILENAME_PREFIX}_r{revision}.html"
    full_path = os.path.join(output_dir, filename)

    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(html_content)
        logger.info(f"✅ HTML 文档已保存: {full_path}")
        return full_path
    except OSError as e:
        logger.error(f"❌ 保存 HTML 文档失败 ({full_path}): {e}")
        return None
