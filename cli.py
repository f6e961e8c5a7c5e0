# cli.py
"""
[V1.0] 命令行界面 (Interface) 层
负责 argparse 定义、配置合并与 RenderConfig 组装，然后交给 Orchestrator。
"""
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import config_manager
from config import GlobalConfig
from context import DIFF_STYLES, ConfigurationError
from data_sources import get_data_source
from orchestrator import NotifyOrchestrator

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """
    负责所有 argparse 的定义。
    """
    parser = argparse.ArgumentParser(
        description="Subversion 提交 HTML 通知生成器",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    # --- 数据来源 ---
    parser.add_argument(
        "-p", "--repos-path", type=str, help="Subversion 仓库路径 (post-commit 的 $1)"
    )
    parser.add_argument(
        "-r", "--revision", type=str, help="版本号 (post-commit 的 $2)"
    )
    parser.add_argument(
        "--commit-json",
        type=str,
        help="从 JSON 文件读取提交数据 (与 -p/-r 互斥)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="JSON 配置文件，提供下列选项的默认值",
    )

    # --- 内容转换 ---
    parser.add_argument(
        "--linkize", action="store_true", help="将日志中的 URL 与邮箱转换为链接"
    )
    parser.add_argument(
        "--wrap-log", action="store_true", help="按段落输出日志，而不是 <pre>"
    )
    parser.add_argument(
        "--revision-url", type=str, help="版本号链接模板，例如 http://svn.example.com/r/%%s"
    )
    parser.add_argument(
        "--author-url", type=str, help="作者链接模板，例如 http://example.com/~%%s"
    )
    parser.add_argument(
        "--ticket-map",
        type=str,
        action="append",
        metavar="PATTERN=URL",
        help="工单映射 (可重复)，例如\n"
        "   '\\b(BUG-(\\d+))\\b=http://bugs.example.com/?show=%%s'",
    )

    # --- Diff ---
    parser.add_argument("--with-diff", action="store_true", help="在通知中包含 diff")
    parser.add_argument(
        "--attach-diff", action="store_true", help="(与 --with-diff 连用) diff 作为附件"
    )
    parser.add_argument(
        "--max-diff-length", type=int, help="diff 最大字节数，超出部分截断"
    )
    parser.add_argument(
        "--diff-style", type=str, choices=DIFF_STYLES, default=None, help="diff 风格"
    )

    # --- 文档 ---
    parser.add_argument("--header", type=str, help="页眉 (以 < 开头视为 HTML)")
    parser.add_argument("--footer", type=str, help="页脚 (以 < 开头视为 HTML)")
    parser.add_argument("--css-url", type=str, help="额外的样式表 URL")
    parser.add_argument("--language", type=str, help="文档语言，例如 en_US")
    parser.add_argument("--charset", type=str, help="字符集 (默认 UTF-8)")
    parser.add_argument("--subject-prefix", type=str, help="邮件主题前缀")
    parser.add_argument("--max-sub-length", type=int, help="邮件主题最大长度")

    # --- 插件 ---
    parser.add_argument(
        "--filter",
        type=str,
        action="append",
        dest="filters",
        metavar="NAME",
        help="启用过滤器插件 (可重复，按顺序执行)，例如 Markdown",
    )
    parser.add_argument("--trac-url", type=str, help="Markdown 过滤器使用的 Trac 地址")

    # --- 输出与投递 ---
    parser.add_argument(
        "-t",
        "--to",
        type=str,
        default=None,
        help="收件人邮箱 (多个请用逗号,分隔)",
    )
    parser.add_argument("-o", "--output", type=str, help="保存 HTML 的目录")
    parser.add_argument(
        "--stdout", action="store_true", help="将 HTML 输出到标准输出"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    return parser


def collect_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """把命令行参数转换为 RenderConfig 字段"""
    overrides: Dict[str, Any] = {
        "linkify": args.linkize,
        "wrap_log": args.wrap_log,
        "revision_url": args.revision_url,
        "author_url": args.author_url,
        "ticket_map": args.ticket_map,
        "with_diff": args.with_diff,
        "attach_diff": args.attach_diff,
        "max_diff_length": args.max_diff_length,
        "diff_style": args.diff_style,
        "header": args.header,
        "footer": args.footer,
        "css_url": args.css_url,
        "language": args.language,
        "charset": args.charset,
        "subject_prefix": args.subject_prefix,
        "max_sub_length": args.max_sub_length,
        "filters": args.filters,
    }
    if args.trac_url:
        overrides["extra"] = {"trac_url": args.trac_url}
    return overrides


def parse_recipients(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [e.strip() for e in value.split(",") if e.strip()]


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    主入口点，返回进程退出码。
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    if args.commit_json and (args.repos_path or args.revision):
        logger.error("❌ 不能同时使用 --commit-json 和 -p/-r。请只选其一。")
        return 1
    if not args.commit_json and not (args.repos_path and args.revision):
        logger.error("❌ 必须提供 --commit-json，或同时提供 -p (仓库路径) 与 -r (版本号)。")
        return 1

    global_config = GlobalConfig()

    # 合并配置并组装 RenderConfig
    try:
        project_config = config_manager.load_project_config(args.config)
        render_config = config_manager.build_render_config(
            collect_overrides(args), project_config, global_config
        )
    except ConfigurationError as e:
        logger.error(f"❌ 配置无效: {e}")
        return 2

    recipients = parse_recipients(args.to)
    logger.info("=" * 50)
    logger.info("🚀 CommitNotify 启动...")
    logger.info(f"   [来源]: {args.commit_json or f'{args.repos_path} r{args.revision}'}")
    logger.info(f"   [收件人]: {', '.join(recipients) if recipients else '未设置'}")
    logger.info(f"   [过滤器]: {', '.join(render_config.filters) or '无'}")
    logger.info("=" * 50)

    try:
        data_source = get_data_source(
            global_config,
            repos_path=args.repos_path,
            revision=args.revision,
            commit_json=args.commit_json,
        )
        orchestrator = NotifyOrchestrator(
            global_config,
            data_source,
            render_config,
            recipients=recipients,
            output_dir=args.output,
        )
    except ValueError as e:
        logger.error(f"❌ 初始化失败: {e}")
        return 1

    html_content = orchestrator.run()
    if html_content is None:
        return 1

    if args.stdout:
        sys.stdout.write(html_content)
    logger.info("✅ Orchestrator 运行完毕。")
    return 0
