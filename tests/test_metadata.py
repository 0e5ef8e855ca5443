"""Tests for building, saving and loading tables.json."""

import json

import pytest

from jfwgen.loader import (
    MetadataError,
    dump_tables,
    find_column,
    get_columns,
    get_procedure,
    iter_tables,
    load_tables,
)
from jfwgen.metadata import (
    COLUMN_INFO_FILE,
    PARAMETER_INFO_FILE,
    build_column,
    build_parameter,
    build_tables,
    build_tables_from_dumps,
)


def column(tables, table_name, name):
    return next(c for c in tables[table_name]["columns"] if c["name"] == name)


class TestBuildColumn:
    def test_record_fields(self, tables):
        record = column(tables, "User", "User_Code")
        assert record == {
            "name": "User_Code",
            "nameCamel": "userCode",
            "namePascal": "UserCode",
            "dataTypeSql": "varchar",
            "dataTypeSqlWithLength": "varchar(20)",
            "dataTypeDotNet": "string",
            "defaultValue": None,
            "isNullable": True,
            "isEncrypted": False,
            "isReadOnly": True,
            "isProtected": True,
        }

    def test_default_loses_parentheses(self, tables):
        assert column(tables, "User", "Status")["defaultValue"] == "1"
        assert column(tables, "User", "Created_Date")["defaultValue"] == "getutcdate"

    def test_bit_default_becomes_boolean(self, tables):
        assert column(tables, "User", "Is_System")["defaultValue"] == "false"

    def test_nullable_value_type(self, tables):
        assert column(tables, "User", "Last_Login_Date")["dataTypeDotNet"] == "DateTime?"
        assert column(tables, "User", "Modified_Date")["dataTypeDotNet"] == "DateTime"

    def test_framework_columns_read_only(self, tables):
        for name in ("ID", "Is_System", "Modified_Date", "Created_Date"):
            assert column(tables, "User", name)["isReadOnly"], name
        assert not column(tables, "User", "Modified_By")["isReadOnly"]

    def test_configured_flags(self, tables):
        assert column(tables, "User", "Username")["isEncrypted"]
        assert column(tables, "UserProfile", "Email_Address")["isEncrypted"]
        assert column(tables, "UserSetting", "Referral_Code")["isProtected"]

    def test_unknown_flag_is_logged(self, config, caplog):
        config.column_flags = {"User": {"Name": ["hidden"]}}
        row = {"TableName": "User", "ColumnName": "Name", "DataType": "nvarchar", "MaxLength": 50}
        record = build_column(row, config)
        assert not record["isEncrypted"]
        assert "Unknown column flag 'hidden'" in caplog.text

    def test_missing_field_raises(self, config):
        with pytest.raises(MetadataError, match="DataType"):
            build_column({"TableName": "User", "ColumnName": "Name"}, config)


class TestBuildParameter:
    def test_required_without_default(self):
        parameter = build_parameter({"ParameterName": "@Username", "DataType": "nvarchar", "MaxLength": 100})
        assert parameter["isRequired"]
        assert parameter["defaultValue"] == ""
        assert parameter["namePascal"] == "Username"
        assert parameter["dataTypeSqlWithLength"] == "nvarchar(100)"

    def test_default_carriage_return_removed(self):
        parameter = build_parameter({"ParameterName": "@Status", "DataType": "smallint", "DefaultValue": "1\r"})
        assert parameter["defaultValue"] == "1"
        assert not parameter["isRequired"]


class TestBuildTables:
    def test_tables_grouped_in_row_order(self, tables):
        assert list(tables) == ["User", "UserProfile", "UserSetting", "Brand", "Country"]

    def test_procedure_attached(self, tables):
        insert = tables["User"]["procedures"]["Insert"]
        assert insert["key"] == "UserInsert"
        assert insert["name"] == "asp_User_Insert"
        assert insert["nameWithSchema"] == "[JFW].[asp_User_Insert]"
        assert [p["name"] for p in insert["parameters"]][:2] == ["@Brand_ID", "@User_Code"]

    def test_table_without_procedures(self, tables):
        assert "procedures" not in tables["Country"]

    def test_procedure_for_unknown_table_skipped(self, config, column_rows, caplog):
        rows = [{"ProcedureName": "asp_Ghost_Get", "ParameterName": "@ID", "DataType": "bigint"}]
        tables = build_tables(column_rows, rows, config)
        assert "Ghost" not in tables
        assert "does not match table name - Ghost" in caplog.text

    def test_malformed_procedure_name_skipped(self, config, column_rows):
        rows = [{"ProcedureName": "sp_who", "ParameterName": "@ID", "DataType": "bigint"}]
        tables = build_tables(column_rows, rows, config)
        assert all("procedures" not in t for t in tables.values())

    def test_build_from_dumps(self, config, column_rows, parameter_rows):
        config.data_dir.mkdir(parents=True)
        (config.data_dir / COLUMN_INFO_FILE).write_text(json.dumps(column_rows))
        (config.data_dir / PARAMETER_INFO_FILE).write_text(json.dumps(parameter_rows))
        tables = build_tables_from_dumps(config.data_dir, config)
        assert tables["User"]["procedures"]["Get"]["key"] == "UserGet"

    def test_missing_dump(self, config):
        with pytest.raises(MetadataError, match="not found"):
            build_tables_from_dumps(config.data_dir, config)


class TestLoader:
    def test_dump_sorts_keys(self, tables, tmp_path):
        path = tmp_path / "data" / "tables.json"
        dump_tables(tables, path)
        loaded = json.loads(path.read_text())
        assert list(loaded) == sorted(tables)
        assert list(loaded["User"]["columns"][0]) == sorted(loaded["User"]["columns"][0])

    def test_load_round_trip(self, tables, tmp_path):
        path = tmp_path / "tables.json"
        dump_tables(tables, path)
        assert load_tables(path) == tables

    def test_load_missing(self, tmp_path):
        with pytest.raises(MetadataError, match="build-metadata"):
            load_tables(tmp_path / "tables.json")

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text("{not json")
        with pytest.raises(MetadataError, match="Invalid JSON"):
            load_tables(path)

    def test_load_table_without_columns(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"User": {"procedures": {}}}))
        with pytest.raises(MetadataError, match="User"):
            load_tables(path)

    def test_iter_tables_excludes(self, tables, config):
        config.excluded_entities = ["Country"]
        assert "Country" not in list(iter_tables(tables, config))

    def test_iter_tables_includes(self, tables, config):
        config.included_entities = ["Brand", "Country"]
        assert list(iter_tables(tables, config)) == ["Brand", "Country"]

    def test_get_columns_unknown_table(self, tables):
        with pytest.raises(MetadataError, match="Ghost"):
            get_columns(tables, "Ghost")

    def test_lookups(self, tables):
        assert get_procedure(tables["User"], "Get")["key"] == "UserGet"
        assert get_procedure(tables["Country"], "Get") is None
        assert find_column(tables["User"], "BrandId")["name"] == "Brand_ID"
        assert find_column(tables["User"], "Missing") is None
