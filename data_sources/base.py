# data_sources/base.py
from abc import ABC, abstractmethod

from models import CommitRecord


class DataSourceError(RuntimeError):
    """获取提交数据失败"""


class DataSource(ABC):
    """
    [V1.0] 数据源抽象基类
    定义了获取单次提交数据的标准接口，屏蔽了底层是 svnlook 还是 JSON 文件的差异。
    """

    @abstractmethod
    def validate(self) -> bool:
        """
        验证数据源是否可用。
        例如：仓库路径是否存在，或者 JSON 文件是否可读。
        """
        pass

    @abstractmethod
    def get_commit(self) -> CommitRecord:
        """
        获取提交数据。
        diff 以惰性来源的形式放在 CommitRecord.diff 中，只在渲染 diff 阶段打开。
        失败时抛出 DataSourceError。
        """
        pass
