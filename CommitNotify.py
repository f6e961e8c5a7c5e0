"""
Subversion 提交 HTML 通知生成器
- cli.py: 负责命令行界面和配置组装
- context.py: 负责渲染配置模型
- report_builder.py: 负责分阶段渲染
- orchestrator.py: 负责数据源 / 渲染 / 投递的编排
- CommitNotify.py: 仅作为主入口启动器

在 post-commit 钩子中使用:
    python CommitNotify.py -p "$1" -r "$2" --to dev@example.com --with-diff --linkize
"""

import logging
import sys

# 1. 初始化日志 (必须在所有模块导入之前完成)
import utils

utils.setup_logging(verbose="-v" in sys.argv or "--verbose" in sys.argv)

logger = logging.getLogger(__name__)


def main() -> int:
    try:
        # 延迟导入 cli 模块，确保日志已配置
        import cli

        return cli.run_cli()

    except Exception as e:
        # 捕获所有未处理的全局异常
        logger.error(f"❌ 发生未处理的全局异常: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
