from abc import ABC, abstractmethod
from typing import List, Optional

from config import GlobalConfig
import logging

logger = logging.getLogger(__name__)


class BaseNotifier(ABC):
    """
    [V1.0] 通知渠道抽象基类
    渲染引擎只负责生成文档，投递由具体的通知器完成。
    """

    def __init__(self, global_config: GlobalConfig, recipients: List[str]):
        """
        初始化通知器，接收全局配置与收件人列表。
        """
        self.global_config = global_config
        self.recipients = recipients

    @property
    @abstractmethod
    def name(self) -> str:
        """返回通知渠道的名称 (日志显示用)"""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        判断此通知器是否应该激活。
        例如：EmailNotifier 检查收件人列表是否为空。
        """
        pass

    @abstractmethod
    def send(
        self,
        subject: str,
        content: str,
        attachment_path: Optional[str] = None,
    ) -> bool:
        """
        执行发送逻辑。
        :param subject: 消息标题
        :param content: 消息正文 (完整的 HTML 文档)
        :param attachment_path: (可选) 附件文件的绝对路径 (例如 attach_diff 时的 diff 文件)
        :return: 是否发送成功
        """
        pass
