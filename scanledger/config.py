"""設定の読み込み・保存。CLI / コマンド層で共有。"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent

DB_FILENAME = "scan-results.db"
CONFIG_FILENAME = "scanner-config.yaml"


def default_config() -> dict[str, Any]:
    """デフォルト設定を返す。"""
    return {
        "lastStoreMappingFile": None,
        "lastItemListFile": None,
        "lastSettings": {
            "delayBetweenItems": 2000,
            "delayBetweenStores": 5000,
            "pageTimeout": 30000,
            "maxRetries": 3,
            "headlessMode": False,
            "captureScreenshots": False,
            "skipExistingResults": False,
            "maxConcurrentAgents": 3,
        },
        "retention": {
            "days_to_keep": 3,  # 起動時クリーンアップの保持日数
            "keep_latest": 10,
        },
    }


def data_dir() -> Path:
    """アプリ専用データディレクトリ（DB・設定ファイルの置き場）。"""
    path = Path(os.getenv("SCANLEDGER_DATA_DIR") or (ROOT / "data"))
    path.mkdir(parents=True, exist_ok=True)
    return path


def db_path() -> str:
    return os.getenv("SCANLEDGER_DB_PATH") or str(data_dir() / DB_FILENAME)


def config_path() -> str:
    return os.getenv("SCANLEDGER_CONFIG_PATH") or str(data_dir() / CONFIG_FILENAME)


def export_dir() -> Path:
    """自動エクスポートの出力先。未指定ならダウンロードフォルダ。"""
    return Path(os.getenv("SCANLEDGER_EXPORT_DIR") or (Path.home() / "Downloads"))


@dataclass(frozen=True)
class AllowedDirectories:
    """ファイルパス検証で許可するディレクトリ群。"""

    app_data: Path
    documents: Path
    downloads: Path
    desktop: Path

    def for_source_files(self) -> tuple[Path, ...]:
        return (self.app_data, self.documents, self.downloads, self.desktop)

    def for_exports(self) -> tuple[Path, ...]:
        # エクスポート先はユーザーから見える場所のみ
        return (self.documents, self.downloads, self.desktop)


def allowed_directories(home: Optional[Path] = None) -> AllowedDirectories:
    home = home or Path.home()
    return AllowedDirectories(
        app_data=data_dir(),
        documents=home / "Documents",
        downloads=home / "Downloads",
        desktop=home / "Desktop",
    )


def load_config(path: Optional[str] = None) -> dict[str, Any]:
    """設定ファイルを読み込む。存在しなければデフォルトを返す。読み込みエラー時もデフォルトを返す。"""
    path = path or config_path()
    if not os.path.isfile(path):
        return default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Error loading config %s: %s", path, e)
        return default_config()
    if not loaded:
        return default_config()
    if not isinstance(loaded, dict):
        logger.error("Config %s is not a mapping, using defaults", path)
        return default_config()
    return loaded


def save_config(config: dict[str, Any], path: Optional[str] = None) -> str:
    """設定ファイルに保存する。保存先パスを返す。"""
    path = path or config_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, allow_unicode=True, default_flow_style=False)
    return path


def retention_defaults(config: Any) -> tuple[int, int]:
    """
    (days_to_keep, keep_latest) を設定から取り出す。
    retention 節が壊れている（マッピングでない・整数にできない）場合はデフォルト。
    """
    defaults = default_config()["retention"]
    fallback = (defaults["days_to_keep"], defaults["keep_latest"])
    retention = config.get("retention") if isinstance(config, dict) else None
    if retention is None:
        return fallback
    if not isinstance(retention, dict):
        logger.warning("Ignoring malformed retention settings: %r", retention)
        return fallback
    try:
        return (
            int(retention.get("days_to_keep", fallback[0])),
            int(retention.get("keep_latest", fallback[1])),
        )
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring malformed retention settings %r: %s", retention, e)
        return fallback
