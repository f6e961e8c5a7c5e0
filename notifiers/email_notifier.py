# notifiers/email_notifier.py
import logging
import os
from typing import Optional

import yagmail

from .base import BaseNotifier

logger = logging.getLogger(__name__)

MAILER_NAME = "CommitNotify"


class EmailNotifier(BaseNotifier):
    """
    [V1.0] 提交通知邮件 (封装 yagmail)
    正文即渲染好的完整 HTML 文档；attach_diff 时 diff 作为附件。
    """

    @property
    def name(self) -> str:
        return "Email (SMTP)"

    def is_enabled(self) -> bool:
        return bool(self.recipients)

    def _connect(self) -> yagmail.SMTP:
        cfg = self.global_config
        if not cfg.is_smtp_configured():
            logger.warning("⚠️ [Email] 未设置 SMTP_PASS，将尝试匿名连接")
        return yagmail.SMTP(
            user=cfg.SMTP_USER,
            password=cfg.SMTP_PASSWORD,
            host=cfg.SMTP_SERVER,
            port=cfg.SMTP_PORT,
        )

    def send(
        self, subject: str, content: str, attachment_path: Optional[str] = None
    ) -> bool:
        logger.info(f"📬 [Email] 「{subject}」 -> {', '.join(self.recipients)}")

        try:
            smtp = self._connect()
            # 文档已是完整 HTML，prettify 会破坏 <pre> 中的 diff
            smtp.send(
                to=self.recipients,
                subject=subject,
                contents=content,
                attachments=[attachment_path] if attachment_path else None,
                headers={"X-Mailer": MAILER_NAME},
                prettify_html=False,
            )
        except Exception as e:
            logger.error(f"❌ [Email] 发送失败: {e}")
            return False

        if attachment_path:
            logger.info(f"✅ [Email] 发送成功 (附件: {os.path.basename(attachment_path)})")
        else:
            logger.info("✅ [Email] 发送成功")
        return True
