# diff_streamer.py
"""
[V1.0] Diff 流式输出
逐行读取 diff 来源 (不整体载入内存)，累计字节数并在超过上限时截断；
识别 svnlook 的文件头并输出锚点，其它行转义后原样输出。
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from formatters import DiffFormatter, HtmlDiffFormatter
from transformer import anchor_id
from utils import escape_html

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^(Modified|Added|Deleted|Copied|Property changes on): (.*)")


@dataclass
class DiffStats:
    """一次 diff 输出的统计"""

    lines: int = 0
    bytes_read: int = 0
    truncated: bool = False
    anchors: List[str] = field(default_factory=list)


def close_quietly(source) -> None:
    """关闭 diff 来源；失败只记录警告，不向上抛出"""
    close = getattr(source, "close", None)
    if close is None:
        return
    try:
        close()
    except Exception as e:
        logger.warning(f"⚠️ 关闭 diff 来源失败: {e}")


class DiffStreamer:
    def __init__(
        self,
        formatter: Optional[DiffFormatter] = None,
        max_length: Optional[int] = None,
        charset: str = "UTF-8",
    ):
        self.formatter = formatter or HtmlDiffFormatter()
        self.max_length = max_length
        self.charset = charset

    def _decode(self, line):
        """返回 (文本, 字节数)"""
        if isinstance(line, bytes):
            return line.decode(self.charset, errors="replace"), len(line)
        return line, len(line.encode(self.charset, errors="replace"))

    def stream(self, source: Iterable, out) -> DiffStats:
        stats = DiffStats()
        seen: Set[str] = set()
        try:
            self._write(out, self.formatter.begin())
            for raw in source:
                text, size = self._decode(raw)
                stats.bytes_read += size
                if self.max_length and stats.bytes_read > self.max_length:
                    stats.truncated = True
                    logger.info(
                        f"✂️ diff 超过 {self.max_length} 字节，已截断 (第 {stats.lines + 1} 行)"
                    )
                    self._write(out, self.formatter.truncated(self.max_length))
                    break
                stats.lines += 1

                text = text.rstrip("\r\n")
                match = HEADER_RE.match(text)
                if match and match.group(2) not in seen:
                    seen.add(match.group(2))
                    path = escape_html(match.group(2))
                    anchor = anchor_id(path)
                    stats.anchors.append(anchor)
                    self._write(
                        out, self.formatter.file_header(match.group(1), path, anchor)
                    )
                else:
                    self._write(out, self.formatter.line(text))

            self._write(out, self.formatter.finish())
        finally:
            close_quietly(source)

        logger.debug(
            f"diff 输出完成: {stats.lines} 行, {stats.bytes_read} 字节, 截断={stats.truncated}"
        )
        return stats

    @staticmethod
    def _write(out, chunks: List[str]) -> None:
        for chunk in chunks:
            out.write(chunk)
