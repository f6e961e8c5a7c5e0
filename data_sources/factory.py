# data_sources/factory.py
import logging
from typing import Optional

from config import GlobalConfig
from .base import DataSource
from .json_file import JsonFileDataSource
from .svnlook import SvnlookDataSource

logger = logging.getLogger(__name__)


def get_data_source(
    global_config: GlobalConfig,
    repos_path: Optional[str] = None,
    revision: Optional[str] = None,
    commit_json: Optional[str] = None,
) -> DataSource:
    """
    数据源工厂
    指定了 JSON 文件则从文件读取，否则使用 svnlook。
    """
    if commit_json:
        logger.info("🔌 [Factory] 初始化数据源: JSON 文件")
        return JsonFileDataSource(commit_json)

    if not repos_path or revision is None:
        raise ValueError("svnlook 数据源需要仓库路径和版本号")

    logger.info("🔌 [Factory] 初始化数据源: svnlook")
    return SvnlookDataSource(repos_path, revision, global_config)
