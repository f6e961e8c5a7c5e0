# hooks/manager.py
import importlib.util
import inspect
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Type

from context import RenderConfig
from .base import BaseFilter, Stage

logger = logging.getLogger(__name__)

StageFilter = Callable[[Any], Any]


class FilterChain:
    """
    [V1.0] 过滤器链
    按阶段保存有序的可调用对象。渲染前注册，渲染期间只读。
    - registered(stage): 该阶段是否有过滤器 (内容阶段据此决定是否接管)
    - apply(stage, value): 依次经过所有过滤器，类似管道 (Pipeline)
    """

    def __init__(self):
        self._filters: Dict[Stage, List[StageFilter]] = {}

    def register(self, stage, func: StageFilter) -> "FilterChain":
        stage = Stage(stage)
        self._filters.setdefault(stage, []).append(func)
        return self

    def registered(self, stage) -> bool:
        return bool(self._filters.get(Stage(stage)))

    def filters_for(self, stage) -> List[StageFilter]:
        return list(self._filters.get(Stage(stage), []))

    def apply(self, stage, value: Any) -> Any:
        """
        依次调用该阶段的过滤器，每个过滤器接收上一个的输出。
        对内容阶段，调用方必须先检查 registered()。
        """
        stage = Stage(stage)
        for func in self._filters.get(stage, []):
            try:
                value = func(value)
            except Exception as e:
                name = getattr(func, "__qualname__", repr(func))
                logger.error(f"❌ [Hooks] 过滤器 {name} 执行 {stage.value} 失败: {e}")
                raise
        return value

    def register_plugin(self, plugin: BaseFilter) -> int:
        """注册插件实例中实现了的所有阶段方法，返回注册数量"""
        count = 0
        for stage in Stage:
            method = getattr(type(plugin), stage.method_name, None)
            if method is None or method is getattr(BaseFilter, stage.method_name):
                continue
            self.register(stage, getattr(plugin, stage.method_name))
            count += 1
        return count


def discover_plugins(plugins_dir: str) -> Dict[str, Type[BaseFilter]]:
    """
    从 plugins/ 目录扫描 .py 文件，返回 {插件名称: 插件类}。
    """
    found: Dict[str, Type[BaseFilter]] = {}
    if not os.path.exists(plugins_dir):
        # 目录不存在则跳过，这不是错误
        return found

    logger.debug(f"🔌 [Hooks] 正在扫描插件目录: {plugins_dir}")
    for filename in sorted(os.listdir(plugins_dir)):
        if filename.endswith(".py") and not filename.startswith("__"):
            found.update(_load_plugin_classes(os.path.join(plugins_dir, filename)))
    return found


def _load_plugin_classes(filepath: str) -> Dict[str, Type[BaseFilter]]:
    """动态加载单个插件文件"""
    classes: Dict[str, Type[BaseFilter]] = {}
    try:
        module_name = "commitnotify_plugin_" + os.path.splitext(
            os.path.basename(filepath)
        )[0]
        spec = importlib.util.spec_from_file_location(module_name, filepath)
        if spec and spec.loader:
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

            # 查找模块中所有继承自 BaseFilter 的类
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, BaseFilter) and obj is not BaseFilter:
                    classes[obj.name] = obj

            if not classes:
                logger.warning(f"   ⚠️ [Hooks] 文件 {filepath} 中未发现 BaseFilter 子类")
    except Exception as e:
        logger.error(f"❌ [Hooks] 加载插件失败 {filepath}: {e}")
    return classes


def load_filters(
    names: List[str],
    config: RenderConfig,
    plugins_dir: str,
    chain: Optional[FilterChain] = None,
) -> FilterChain:
    """
    按请求的名称顺序实例化插件并注册到过滤器链。
    名称不存在时抛出 ValueError。
    """
    chain = chain or FilterChain()
    if not names:
        return chain

    available = discover_plugins(plugins_dir)
    for name in names:
        plugin_cls = available.get(name)
        if plugin_cls is None:
            raise ValueError(
                f"未找到过滤器插件 '{name}' (可用: {', '.join(sorted(available)) or '无'})"
            )
        count = chain.register_plugin(plugin_cls(config))
        logger.info(f"   ✅ [Hooks] 已加载过滤器: {name} ({count} 个阶段)")
    return chain
