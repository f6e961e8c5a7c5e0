import logging
import sys


# 将日志配置移到这里，作为一个可被调用的函数
def setup_logging(verbose: bool = False):
    """配置全局日志"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def escape_html(text) -> str:
    """
    转义 HTML 特殊字符 (仅 < > & ")。
    单引号保持原样，URL 规则依赖这一点。
    """
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )
