# plugins/watermark.py
from typing import List

from hooks.base import BaseFilter


class WatermarkPlugin(BaseFilter):
    """
    示例插件：在文档结尾注入一行小字
    """

    name = "Watermark"

    TEXT = "Sent by CommitNotify"

    def end(self, lines: List[str]) -> List[str]:
        footer = f"<p style='text-align: center; color: #999; font-size: 10px;'>{self.TEXT}</p>"
        out = []
        for line in lines:
            if "</body>" in line:
                line = line.replace("</body>", f"{footer}\n</body>", 1)
            out.append(line)
        return out
