# data_sources/svnlook.py
"""
[V1.0] svnlook 数据源
通过 svnlook 命令行工具读取 Subversion 仓库中的一次提交。
"""
import logging
import os
import subprocess
from typing import Dict, List, Optional

from config import GlobalConfig
from models import ChangeKind, CommitRecord
from .base import DataSource, DataSourceError

logger = logging.getLogger(__name__)


def run_svnlook(
    global_config: GlobalConfig,
    subcommand: str,
    repos_path: str,
    revision: str,
    context: str = "执行svnlook命令",
) -> Optional[str]:
    """
    统一的 svnlook 命令执行函数 (一次性读取全部输出，适用于 info/changed 等小输出)
    """
    cmd = [global_config.SVNLOOK, subcommand, repos_path, "-r", str(revision)]
    try:
        logger.debug(f"执行命令: {' '.join(cmd)}")
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=global_config.SVNLOOK_TIMEOUT,
        )
        if result.returncode != 0:
            logger.error(f"{context}失败: {result.stderr.strip()}")
            return None
        return result.stdout
    except subprocess.TimeoutExpired:
        logger.error(f"{context}超时")
        return None
    except OSError as e:
        logger.error(f"{context}出错: {e}")
        return None


def parse_changed(output: str) -> Dict[ChangeKind, List[str]]:
    """
    解析 svnlook changed 的输出。
    第一列为 U/A/D/_，第二列为 U 表示属性也有变化；路径从第 5 个字符开始。
    """
    files: Dict[ChangeKind, List[str]] = {}
    for line in output.splitlines():
        if len(line) < 5:
            continue
        action, prop, path = line[0], line[1], line[4:]
        if action == "_":
            files.setdefault(ChangeKind.PROPERTY_CHANGED, []).append(path)
            continue
        try:
            kind = ChangeKind(action)
        except ValueError:
            logger.warning(f"无法识别的变更类型: {line}")
            continue
        files.setdefault(kind, []).append(path)
        if prop == "U":
            files.setdefault(ChangeKind.PROPERTY_CHANGED, []).append(path)
    return files


def parse_info(output: str):
    """
    解析 svnlook info 的输出: 作者、日期、日志长度、日志内容。
    返回 (author, date, message_lines)
    """
    lines = output.splitlines()
    if len(lines) < 3:
        raise DataSourceError(f"svnlook info 输出格式异常: {output!r}")
    author, date = lines[0].strip(), lines[1].strip()
    message = lines[3:]
    # 去掉末尾空行
    while message and not message[-1].strip():
        message.pop()
    return author, date, message


class SvnlookDiffStream:
    """
    以流的方式读取 svnlook diff 的输出 (二进制行)。
    close() 在子进程异常退出时抛出 OSError，由调用方记录为警告。
    """

    def __init__(self, cmd: List[str]):
        self.cmd = cmd
        self._proc = subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL
        )
        self._exhausted = False

    def __iter__(self):
        for line in self._proc.stdout:
            yield line
        self._exhausted = True

    def close(self) -> None:
        stopped_early = not self._exhausted
        if stopped_early and self._proc.poll() is None:
            # 提前结束 (例如截断)，不再需要剩余输出
            self._proc.terminate()
        self._proc.stdout.close()
        code = self._proc.wait()
        if stopped_early and code < 0:
            # 被 terminate 或因管道关闭 (SIGPIPE) 退出，属于预期
            logger.debug(f"svnlook diff 已提前结束 (信号 {-code})")
            return
        if code != 0:
            raise OSError(f"Child process exited: {code}")


class SvnlookDataSource(DataSource):
    """
    svnlook 数据源实现。
    """

    def __init__(self, repos_path: str, revision: str, global_config: GlobalConfig):
        self.repos_path = repos_path
        self.revision = str(revision)
        self.global_config = global_config

    def validate(self) -> bool:
        if not os.path.isdir(self.repos_path):
            logger.error(f"❌ 仓库路径不存在: {self.repos_path}")
            return False
        if not self.revision.isdigit():
            logger.error(f"❌ 版本号无效: {self.revision}")
            return False
        return True

    def _run(self, subcommand: str) -> str:
        output = run_svnlook(
            self.global_config,
            subcommand,
            self.repos_path,
            self.revision,
            f"svnlook {subcommand} r{self.revision}",
        )
        if output is None:
            raise DataSourceError(f"svnlook {subcommand} 执行失败 (r{self.revision})")
        return output

    def get_commit(self) -> CommitRecord:
        author, date, message = parse_info(self._run("info"))
        files = parse_changed(self._run("changed"))
        diff_cmd = [
            self.global_config.SVNLOOK,
            "diff",
            self.repos_path,
            "-r",
            self.revision,
        ]
        logger.info(f"✅ [svnlook] 已读取 r{self.revision} (作者: {author})")
        return CommitRecord(
            revision=self.revision,
            author=author,
            date=date,
            message=message,
            files=files,
            diff=lambda: SvnlookDiffStream(diff_cmd),
        )
