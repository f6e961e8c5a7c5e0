# config_manager.py
"""
[V1.0] 配置管理器
- 负责加载仓库级默认配置 (config.json)
- 负责解析工单映射 (PATTERN=URL 字符串或 JSON 对象)
- 按 命令行 > config.json > GlobalConfig 的优先级合并并组装 RenderConfig
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from config import GlobalConfig
from context import ConfigurationError, RenderConfig, TicketRule

logger = logging.getLogger(__name__)

# RenderConfig 中允许由 config.json 提供默认值的字段
CONFIG_FIELDS = (
    "linkify",
    "wrap_log",
    "revision_url",
    "author_url",
    "ticket_map",
    "with_diff",
    "attach_diff",
    "max_diff_length",
    "diff_style",
    "header",
    "footer",
    "css_url",
    "language",
    "charset",
    "subject_prefix",
    "max_sub_length",
    "filters",
    "extra",
)


def load_project_config(config_path: Optional[str]) -> Dict[str, Any]:
    """加载配置文件 (不存在时返回空字典)"""
    if not config_path or not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"加载配置 {config_path} 失败: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"配置文件 {config_path} 顶层必须是 JSON 对象")

    unknown = sorted(set(data) - set(CONFIG_FIELDS))
    if unknown:
        logger.warning(f"⚠️ 配置文件中存在未知字段，已忽略: {', '.join(unknown)}")
    logger.info(f"✅ 已加载配置: {config_path}")
    return {k: v for k, v in data.items() if k in CONFIG_FIELDS}


def parse_ticket_map(value: Any) -> List[TicketRule]:
    """
    支持三种写法:
      - ["\\b(BUG-(\\d+))\\b=http://bugs/?id=%s", ...]
      - {"\\b(BUG-(\\d+))\\b": "http://bugs/?id=%s"}  (按键的声明顺序)
      - [["pattern", "url"], ...]
    """
    if not value:
        return []
    if isinstance(value, dict):
        return [TicketRule(pattern, url) for pattern, url in value.items()]
    if isinstance(value, list):
        rules = []
        for item in value:
            if isinstance(item, str):
                rules.append(TicketRule.parse(item))
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                rules.append(TicketRule(item[0], item[1]))
            else:
                raise ConfigurationError(f"无法识别的工单映射: {item!r}")
        return rules
    raise ConfigurationError(f"ticket_map 必须是列表或对象: {value!r}")


def build_render_config(
    overrides: Dict[str, Any],
    project_config: Optional[Dict[str, Any]] = None,
    global_config: Optional[GlobalConfig] = None,
) -> RenderConfig:
    """
    合并配置并构造 RenderConfig。
    overrides 中值为 None 的项视为未指定；列表项 (ticket_map / filters) 会追加在 config.json 之后。
    校验失败抛出 ConfigurationError。
    """
    global_config = global_config or GlobalConfig()
    merged: Dict[str, Any] = {
        "charset": global_config.DEFAULT_CHARSET,
        "max_diff_length": global_config.DEFAULT_MAX_DIFF_LENGTH,
        "diff_style": global_config.DEFAULT_DIFF_STYLE,
    }
    merged.update(project_config or {})
    merged["ticket_map"] = parse_ticket_map(merged.get("ticket_map"))
    merged["filters"] = list(merged.get("filters") or [])

    for key, value in overrides.items():
        if key not in CONFIG_FIELDS or value is None:
            continue
        if key == "ticket_map":
            merged[key] = merged[key] + parse_ticket_map(value)
            continue
        if key == "filters":
            merged[key] = merged[key] + list(value)
            continue
        if key == "extra":
            merged[key] = {**(merged.get(key) or {}), **value}
            continue
        if isinstance(value, bool) and not value and merged.get(key):
            # 命令行开关未打开时不覆盖 config.json 中的 True
            continue
        merged[key] = value

    merged["extra"] = dict(merged.get("extra") or {})

    return RenderConfig(**merged)
