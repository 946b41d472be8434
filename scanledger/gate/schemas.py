"""ガード対象コマンドのスキーマ定義。"""
from __future__ import annotations

from functools import partial

from scanledger.config import AllowedDirectories
from scanledger.gate.paths import validate_export_path, validate_file_path
from scanledger.gate.validator import FieldRule, Schema

MAX_PATH_LENGTH = 500

STORE_MAPPING_EXTENSIONS = (".csv",)
ITEM_LIST_EXTENSIONS = (".csv", ".xlsx")

SCAN_SETTINGS: Schema = {
    "delayBetweenItems": FieldRule("number", min=500, max=60000),
    "delayBetweenStores": FieldRule("number", min=1000, max=120000),
    "pageTimeout": FieldRule("number", min=5000, max=300000),
    "maxRetries": FieldRule("number", min=1, max=10),
    "maxConcurrentAgents": FieldRule("number", min=1, max=31),
    "headless": FieldRule("boolean"),
}


def build_schemas(dirs: AllowedDirectories) -> dict[str, Schema]:
    """許可ディレクトリを束縛したスキーマ一式を返す。"""
    return {
        "start-scan": {
            "storeMappingFile": FieldRule(
                "string",
                required=True,
                max_length=MAX_PATH_LENGTH,
                check=partial(
                    validate_file_path, allowed_extensions=STORE_MAPPING_EXTENSIONS, dirs=dirs
                ),
            ),
            "itemListFile": FieldRule(
                "string",
                max_length=MAX_PATH_LENGTH,
                check=partial(
                    validate_file_path, allowed_extensions=ITEM_LIST_EXTENSIONS, dirs=dirs
                ),
            ),
            "settings": FieldRule("object", required=True, properties=SCAN_SETTINGS),
        },
        "export-results": {
            "exportPath": FieldRule(
                "string",
                required=True,
                max_length=MAX_PATH_LENGTH,
                check=partial(validate_export_path, dirs=dirs),
            ),
        },
        "save-config": {
            "config": FieldRule("object", required=True),
        },
    }
