"""CommandGate（スキーマ検証）とパス・商品ID検証のユニットテスト。"""
import pytest

from scanledger.errors import (
    CustomValidationError,
    LengthError,
    MissingFieldError,
    RangeError,
    TypeMismatchError,
    ValidationError,
)
from scanledger.gate import CommandGate, FieldRule, default_gate
from scanledger.gate.paths import (
    is_valid_item_id,
    sanitize_item_id,
    validate_export_path,
    validate_file_path,
)


def _scan_payload(dirs, **overrides):
    payload = {
        "storeMappingFile": str(dirs.documents / "stores.csv"),
        "settings": {
            "delayBetweenItems": 2000,
            "delayBetweenStores": 5000,
            "pageTimeout": 30000,
            "maxRetries": 3,
            "maxConcurrentAgents": 3,
            "headless": True,
        },
    }
    payload.update(overrides)
    return payload


def test_valid_start_scan_payload_passes(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs, itemListFile=str(dirs.downloads / "items.xlsx"))
    validated = gate.validate("start-scan", payload)
    assert validated["storeMappingFile"] == payload["storeMappingFile"]
    assert validated["itemListFile"] == payload["itemListFile"]
    assert validated["settings"]["maxConcurrentAgents"] == 3


def test_unknown_fields_are_dropped(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs, injected="rm -rf /")
    payload["settings"]["screenshotDir"] = "/tmp"
    validated = gate.validate("start-scan", payload)
    assert "injected" not in validated
    assert "screenshotDir" not in validated["settings"]


def test_missing_required_field(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs)
    del payload["storeMappingFile"]
    with pytest.raises(MissingFieldError) as exc_info:
        gate.validate("start-scan", payload)
    assert exc_info.value.field == "storeMappingFile"


def test_optional_field_may_be_absent_or_none(dirs):
    gate = default_gate(dirs)
    validated = gate.validate("start-scan", _scan_payload(dirs, itemListFile=None))
    assert "itemListFile" not in validated


def test_type_mismatch(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs)
    payload["settings"]["headless"] = "yes"
    with pytest.raises(TypeMismatchError) as exc_info:
        gate.validate("start-scan", payload)
    assert exc_info.value.field == "settings.headless"


def test_boolean_is_not_a_number(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs)
    payload["settings"]["maxRetries"] = True
    with pytest.raises(TypeMismatchError):
        gate.validate("start-scan", payload)


@pytest.mark.parametrize(
    "field,value",
    [
        ("delayBetweenItems", 499),
        ("delayBetweenItems", 60001),
        ("maxConcurrentAgents", 0),
        ("maxConcurrentAgents", 32),
        ("pageTimeout", 4999),
    ],
)
def test_numeric_bounds(dirs, field, value):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs)
    payload["settings"][field] = value
    with pytest.raises(RangeError):
        gate.validate("start-scan", payload)


def test_numeric_bounds_are_inclusive(dirs):
    gate = default_gate(dirs)
    payload = _scan_payload(dirs)
    payload["settings"]["delayBetweenItems"] = 500
    payload["settings"]["maxConcurrentAgents"] = 31
    gate.validate("start-scan", payload)


def test_string_length_bound(dirs):
    gate = default_gate(dirs)
    long_path = str(dirs.documents / ("x" * 600 + ".csv"))
    with pytest.raises(LengthError):
        gate.validate("start-scan", _scan_payload(dirs, storeMappingFile=long_path))


def test_path_predicate_failure_is_custom_validation_error(dirs):
    gate = default_gate(dirs)
    with pytest.raises(CustomValidationError) as exc_info:
        gate.validate("start-scan", _scan_payload(dirs, storeMappingFile="/etc/stores.csv"))
    assert "allowed directory" in str(exc_info.value)


def test_save_config_accepts_any_object(dirs):
    gate = default_gate(dirs)
    config = {"anything": {"nested": [1, 2, 3]}}
    assert gate.validate("save-config", {"config": config}) == {"config": config}
    with pytest.raises(TypeMismatchError):
        gate.validate("save-config", {"config": "not an object"})


def test_unknown_operation_rejected(dirs):
    with pytest.raises(ValidationError):
        default_gate(dirs).validate("drop-tables", {})


def test_predicate_returning_message_fails():
    gate = CommandGate({"op": {"name": FieldRule("string", check=lambda v: "not allowed")}})
    with pytest.raises(CustomValidationError) as exc_info:
        gate.validate("op", {"name": "x"})
    assert exc_info.value.reason == "not allowed"


def test_predicate_returning_none_passes():
    gate = CommandGate({"op": {"name": FieldRule("string", check=lambda v: None)}})
    assert gate.validate("op", {"name": "x"}) == {"name": "x"}


# --- paths -----------------------------------------------------------------


@pytest.mark.parametrize(
    "path",
    ["../../etc/passwd.csv", "../../etc/passwd", "Documents/../../../etc/shadow.csv"],
)
def test_file_path_rejects_traversal(dirs, path):
    with pytest.raises(ValueError, match="traversal"):
        validate_file_path(path, [".csv"], dirs)


def test_file_path_rejects_traversal_inside_allowed_dir(dirs):
    path = str(dirs.documents / ".." / "Documents" / "stores.csv")
    with pytest.raises(ValueError, match="traversal"):
        validate_file_path(path, [".csv"], dirs)


def test_file_path_rejects_outside_allowed_dirs(dirs, tmp_path):
    with pytest.raises(ValueError, match="allowed directory"):
        validate_file_path(str(tmp_path / "elsewhere" / "stores.csv"), [".csv"], dirs)


def test_file_path_rejects_sibling_with_common_prefix(dirs, tmp_path):
    sibling = tmp_path / "Documents2" / "stores.csv"
    with pytest.raises(ValueError):
        validate_file_path(str(sibling), [".csv"], dirs)


def test_file_path_checks_extension(dirs):
    with pytest.raises(ValueError, match="extension"):
        validate_file_path(str(dirs.documents / "stores.exe"), [".csv"], dirs)
    assert validate_file_path(str(dirs.documents / "STORES.CSV"), [".csv"], dirs) is True


def test_file_path_allows_app_data(dirs):
    assert validate_file_path(str(dirs.app_data / "stores.csv"), [".csv"], dirs) is True


def test_export_path_rules(dirs):
    assert validate_export_path(str(dirs.desktop / "results.xlsx"), dirs) is True
    with pytest.raises(ValueError, match="xlsx"):
        validate_export_path(str(dirs.desktop / "results.csv"), dirs)
    with pytest.raises(ValueError, match="Documents, Downloads, or Desktop"):
        validate_export_path(str(dirs.app_data / "results.xlsx"), dirs)
    with pytest.raises(ValueError, match="traversal"):
        validate_export_path("../../etc/passwd.xlsx", dirs)


# --- item id -----------------------------------------------------------------


@pytest.mark.parametrize("value", ["B08X4FN2K9", "0123456789", "ABCDEFGHIJ"])
def test_item_id_accepts_ten_uppercase_alphanumerics(value):
    assert is_valid_item_id(value)
    assert sanitize_item_id(value) == value


@pytest.mark.parametrize(
    "value",
    ["B08X4FN2K", "B08X4FN2K90", "b08x4fn2k9", "B08X4-N2K9", "B08X4FN2K9\n", "", None, 1234567890],
)
def test_item_id_rejects_malformed(value):
    assert not is_valid_item_id(value)
    with pytest.raises(ValueError):
        sanitize_item_id(value)
