# data_sources/json_file.py
import json
import logging
import os
from typing import Any, Dict, List

from models import ChangeKind, CommitRecord
from .base import DataSource, DataSourceError

logger = logging.getLogger(__name__)

# JSON 中文件列表的键名
FILE_KEYS = {
    "modified": ChangeKind.MODIFIED,
    "added": ChangeKind.ADDED,
    "deleted": ChangeKind.DELETED,
    "property_changed": ChangeKind.PROPERTY_CHANGED,
}


class JsonFileDataSource(DataSource):
    """
    从 JSON 文件读取一次提交 (便于在没有 Subversion 的环境中使用或调试)。

    格式:
        {
          "revision": "42", "author": "alice", "date": "2024-01-01 12:00:00",
          "message": "Fix BUG-1\\n\\nDetails",
          "files": {"modified": ["trunk/a.c"], "added": [], ...},
          "diff_file": "r42.diff"
        }
    diff_file 为相对 JSON 文件的路径，渲染时逐行读取。
    """

    def __init__(self, json_path: str):
        self.json_path = json_path

    def validate(self) -> bool:
        if not os.path.isfile(self.json_path):
            logger.error(f"❌ 提交文件不存在: {self.json_path}")
            return False
        return True

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.json_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise DataSourceError(f"读取提交文件失败 ({self.json_path}): {e}") from e

    def get_commit(self) -> CommitRecord:
        data = self._load()
        for key in ("revision", "author", "date"):
            if key not in data:
                raise DataSourceError(f"提交文件缺少字段 '{key}': {self.json_path}")

        message = data.get("message", [])
        if isinstance(message, str):
            message = message.splitlines()

        files: Dict[ChangeKind, List[str]] = {}
        for key, paths in (data.get("files") or {}).items():
            kind = FILE_KEYS.get(key)
            if kind is None:
                logger.warning(f"⚠️ 忽略未知的文件列表类型: {key}")
                continue
            files[kind] = list(paths)

        diff = None
        if data.get("diff_file"):
            diff_path = os.path.join(
                os.path.dirname(os.path.abspath(self.json_path)), data["diff_file"]
            )
            diff = lambda: open(diff_path, "rb")

        return CommitRecord(
            revision=str(data["revision"]),
            author=data["author"],
            date=data["date"],
            message=list(message),
            files=files,
            diff=diff,
        )
