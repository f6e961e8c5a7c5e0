# 导入具体实现以触发 @register_diff_formatter 注册
from .base import (
    DIFF_FORMATTER_REGISTRY,
    CssProvider,
    DiffFormatter,
    MetadataFormatter,
    TemplateCssProvider,
    get_diff_formatter,
)
from .html import HtmlDiffFormatter, HtmlMetadataFormatter
from .color_diff import ColorDiffFormatter
