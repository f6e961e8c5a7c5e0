# orchestrator.py
"""
[V1.0] 业务逻辑编排器
数据源 -> 过滤器加载 -> 渲染 -> 保存 -> 多渠道通知
"""
import io
import logging
import os
import tempfile
from typing import List, Optional

from config import GlobalConfig
from context import RenderConfig
from data_sources import DataSource, DataSourceError
from diff_streamer import close_quietly
from hooks import load_filters
from models import CommitRecord
from notifiers.factory import get_active_notifiers
import report_builder

logger = logging.getLogger(__name__)


class NotifyOrchestrator:
    """
    负责执行一次提交通知的完整流程。
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        data_source: DataSource,
        render_config: RenderConfig,
        recipients: Optional[List[str]] = None,
        output_dir: Optional[str] = None,
    ):
        self.global_config = global_config
        self.data_source = data_source
        self.render_config = render_config
        self.recipients = recipients or []
        self.output_dir = output_dir

        # 初始化并加载过滤器插件
        self.filters = load_filters(
            render_config.filters, render_config, global_config.PLUGINS_DIR
        )
        logger.info("✅ NotifyOrchestrator 已初始化")

    def render(self, record: CommitRecord):
        """渲染到内存，返回 (html, RenderResult)"""
        buffer = io.StringIO()
        renderer = report_builder.Renderer(
            self.render_config,
            self.filters,
            templates_dir=self.global_config.TEMPLATES_DIR,
        )
        result = renderer.render(record, buffer)
        if result.diff_stats and result.diff_stats.truncated:
            logger.warning(
                f"⚠️ diff 已在 {self.render_config.max_diff_length} 字节处截断"
            )
        return buffer.getvalue(), result

    def run(self) -> Optional[str]:
        """
        执行核心业务流程，返回生成的 HTML (失败时返回 None)。
        """
        # --- 0. 验证数据源 ---
        if not self.data_source.validate():
            logger.error("❌ 数据源验证失败，终止运行。")
            return None

        # --- 1. 获取提交数据 ---
        try:
            record = self.data_source.get_commit()
        except DataSourceError as e:
            logger.error(f"❌ 获取提交数据失败: {e}")
            return None

        # --- 2. 渲染 ---
        html_content, result = self.render(record)

        # --- 3. 保存 ---
        if self.output_dir:
            report_builder.save_html_report(
                html_content, self.output_dir, record.revision
            )

        # --- 4. 多渠道通知 ---
        self._handle_notifications(record, result.subject, html_content)
        return html_content

    def _write_diff_attachment(
        self, record: CommitRecord, tmp_dir: str
    ) -> Optional[str]:
        """attach_diff 模式下把 diff 写入 tmp_dir 作为附件"""
        if not (self.render_config.with_diff and self.render_config.attach_diff):
            return None
        if not record.has_diff:
            return None

        path = os.path.join(tmp_dir, f"r{record.revision}.diff")
        source = record.open_diff()
        try:
            with open(path, "wb") as f:
                for line in source:
                    if isinstance(line, str):
                        line = line.encode(self.render_config.charset, errors="replace")
                    f.write(line)
        finally:
            close_quietly(source)
        logger.info(f"📎 diff 附件已生成: {path}")
        return path

    def _handle_notifications(
        self, record: CommitRecord, subject: str, html_content: str
    ) -> None:
        notifiers = get_active_notifiers(self.global_config, self.recipients)
        if not notifiers:
            logger.info("ℹ️ 未配置收件人，跳过通知。")
            return

        # 附件只在投递期间存在，离开 with 后连同目录一起删除
        with tempfile.TemporaryDirectory(prefix="commitnotify_") as tmp_dir:
            attachment_path = self._write_diff_attachment(record, tmp_dir)
            for notifier in notifiers:
                if not notifier.send(subject, html_content, attachment_path):
                    logger.error(f"❌ 通知渠道 {notifier.name} 发送失败")
