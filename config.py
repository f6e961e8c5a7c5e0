# config.py
"""
[V1.0] 全局配置
环境变量优先从脚本目录下的 .env 加载，找不到时回退到 CWD。
[V1.1] templates/ 与 plugins/ 作为包数据安装，路径通过 importlib.resources 解析。
"""
import os
from importlib import resources

from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
else:
    load_dotenv()


def _int_env(name: str, default=None):
    value = os.getenv(name, "").strip()
    return int(value) if value.isdigit() else default


def _package_dir(package: str) -> str:
    """随项目安装的数据包 (templates / plugins) 所在目录"""
    return str(resources.files(package))


class GlobalConfig:
    """
    CommitNotify 的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    TEMPLATES_DIR: str = _package_dir("templates")
    PLUGINS_DIR: str = _package_dir("plugins")

    # --- svnlook 命令 ---
    SVNLOOK: str = os.getenv("SVNLOOK", "svnlook")
    SVNLOOK_TIMEOUT: int = 30

    # --- 渲染默认值 ---
    DEFAULT_CHARSET: str = os.getenv("NOTIFY_CHARSET", "UTF-8")
    DEFAULT_MAX_DIFF_LENGTH = _int_env("NOTIFY_MAX_DIFF_LENGTH")
    DEFAULT_DIFF_STYLE: str = os.getenv("NOTIFY_DIFF_STYLE", "html")
    OUTPUT_FILENAME_PREFIX = "CommitNotify"
    PROJECT_CONFIG_FILE: str = "config.json"

    # =================================================================
    # --- 邮件(SMTP)配置 ---
    # =================================================================
    SMTP_SERVER: str = os.getenv("SMTP_SERVER", "smtp.example.com")
    SMTP_PORT: int = _int_env("SMTP_PORT", 465)
    SMTP_USER: str = os.getenv("SMTP_USER", "svn-notify@example.com")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASS", "")

    def is_smtp_configured(self) -> bool:
        """检查 SMTP 凭证是否已在环境中设置"""
        return bool(self.SMTP_USER and self.SMTP_PASSWORD)
