# notifiers/factory.py
import logging
from typing import Dict, List, Type

from config import GlobalConfig
from .base import BaseNotifier
from .email_notifier import EmailNotifier

logger = logging.getLogger(__name__)

# 投递渠道: 名称 -> 实现类
NOTIFIER_CLASSES: Dict[str, Type[BaseNotifier]] = {
    "email": EmailNotifier,
}


def get_active_notifiers(
    global_config: GlobalConfig, recipients: List[str]
) -> List[BaseNotifier]:
    """
    返回对当前收件人可用的通知渠道。
    单个渠道初始化失败只记录日志，不影响其它渠道。
    """
    active: List[BaseNotifier] = []
    for key, notifier_cls in NOTIFIER_CLASSES.items():
        try:
            notifier = notifier_cls(global_config, recipients)
        except Exception as e:
            logger.error(f"⚠️ 通知渠道 {key} 初始化失败: {e}")
            continue
        if notifier.is_enabled():
            logger.info(f"🔌 已激活通知渠道: {notifier.name}")
            active.append(notifier)
        else:
            logger.debug(f"通知渠道 {key} 未启用")
    return active
