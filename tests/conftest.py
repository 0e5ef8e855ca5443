"""Shared fixtures: a small schema built from raw extraction rows.

Tables: User (with UserProfile and UserSetting child tables), Brand and
Country. Procedures are attached to User and Brand only.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from jfwgen.config import GeneratorConfig, from_dict
from jfwgen.metadata import build_tables
from jfwgen.templating import Renderer

FIXED_DATE = "2024-01-15"


def col(table: str, name: str, data_type: str, nullable: bool = False,
        max_length: int | None = None, default: str | None = None) -> dict[str, Any]:
    return {
        "TableName": table,
        "ColumnName": name,
        "DataType": data_type,
        "IsNullable": 1 if nullable else 0,
        "MaxLength": max_length,
        "DefaultValue": default,
    }


def param(procedure: str, name: str, data_type: str,
          max_length: int | None = None, default: str | None = None) -> dict[str, Any]:
    return {
        "ProcedureName": procedure,
        "ParameterName": name,
        "DataType": data_type,
        "MaxLength": max_length,
        "DefaultValue": default,
    }


def audit_columns(table: str) -> list[dict[str, Any]]:
    return [
        col(table, "Modified_By", "bigint", nullable=True),
        col(table, "Modified_Date", "datetime", default="(getutcdate())"),
        col(table, "Created_By", "bigint", nullable=True),
        col(table, "Created_Date", "datetime", default="(getutcdate())"),
    ]


COLUMN_ROWS = [
    col("User", "ID", "bigint"),
    col("User", "UID", "uniqueidentifier", default="(newid())"),
    col("User", "Brand_ID", "bigint"),
    col("User", "User_Code", "varchar", nullable=True, max_length=20),
    col("User", "Username", "nvarchar", max_length=100),
    col("User", "Password", "nvarchar", max_length=255),
    col("User", "Status", "smallint", default="((1))"),
    col("User", "Is_System", "bit", default="((0))"),
    col("User", "Last_Login_Date", "datetime", nullable=True),
    *audit_columns("User"),
    col("UserProfile", "ID", "bigint"),
    col("UserProfile", "User_ID", "bigint"),
    col("UserProfile", "First_Name", "nvarchar", nullable=True, max_length=50),
    col("UserProfile", "Email_Address", "nvarchar", nullable=True, max_length=255),
    col("UserProfile", "Status", "smallint", default="((1))"),
    *audit_columns("UserProfile"),
    col("UserSetting", "ID", "bigint"),
    col("UserSetting", "User_ID", "bigint"),
    col("UserSetting", "Referral_Code", "varchar", nullable=True, max_length=20),
    col("UserSetting", "Is_Default", "bit", default="((0))"),
    *audit_columns("UserSetting"),
    col("Brand", "ID", "bigint"),
    col("Brand", "Name", "nvarchar", max_length=100),
    col("Brand", "Brand_URL", "varchar", nullable=True, max_length=-1),
    col("Brand", "Status", "smallint", default="((1))"),
    *audit_columns("Brand"),
    col("Country", "ID", "bigint"),
    col("Country", "Name", "nvarchar", max_length=100),
    col("Country", "Code", "char", max_length=2),
    col("Country", "Is_Default", "bit", default="((0))"),
    col("Country", "Is_System", "bit", default="((0))"),
    *audit_columns("Country"),
]

PARAMETER_ROWS = [
    param("asp_User_Insert", "@Brand_ID", "bigint"),
    param("asp_User_Insert", "@User_Code", "varchar", 20, "NULL"),
    param("asp_User_Insert", "@Username", "nvarchar", 100),
    param("asp_User_Insert", "@Password", "nvarchar", 255),
    param("asp_User_Insert", "@Status", "smallint", default="1"),
    param("asp_User_Insert", "@Last_Login_Date", "datetime", default="NULL"),
    param("asp_User_Insert", "@Created_By", "bigint", default="NULL"),
    param("asp_User_Update", "@ID", "bigint"),
    param("asp_User_Update", "@UID", "uniqueidentifier"),
    param("asp_User_Update", "@Username", "nvarchar", 100),
    param("asp_User_Update", "@Password", "nvarchar", 255),
    param("asp_User_Update", "@Status", "int", default="1"),
    param("asp_User_Update", "@Last_Login_Date", "datetime", default="NULL"),
    param("asp_User_Update", "@Modified_By", "bigint", default="NULL"),
    param("asp_User_Get", "@ID", "bigint"),
    param("asp_User_Delete", "@ID", "bigint"),
    param("asp_Brand_Get", "@ID", "bigint"),
    param("asp_Brand_Get", "@Brand_URL", "varchar", -1, "NULL"),
]

RAW_CONFIG: dict[str, Any] = {
    "table_schema": "JFW",
    "current_date": FIXED_DATE,
    "author": {"login": "jin.jackson", "full_name": "Jin Jackson", "dev_code": "dev22"},
    "excluded_entities": ["LOG4NET"],
    "excluded_core_suffixes": [".UnitTest"],
    "table_paths": {"User": "user", "UserProfile": "user", "UserSetting": "user", "Brand": "brand"},
    "column_flags": {
        "User": {
            "Username": ["encrypted"],
            "Password": ["encrypted"],
            "Brand_ID": ["read_only", "protected"],
            "User_Code": ["read_only", "protected"],
        },
        "UserProfile": {"Email_Address": ["encrypted"]},
        "UserSetting": {"Referral_Code": ["read_only", "protected"]},
    },
    "soft_delete_tables": ["Brand", "User"],
    "view_tables": ["User"],
    "sp_custom": {
        "User": {
            "alias": {"User": "U", "UserProfile": "UP", "UserSetting": "US"},
            "child_tables": ["UserProfile", "UserSetting"],
            "custom_parameters": {
                "brandUrl": {
                    "name": "Brand_URL",
                    "type": "VARCHAR(MAX)",
                    "property_name": "BrandUrl",
                    "property_type": "string",
                    "filter_criteria": (
                        "IF @Brand_URL IS NOT NULL AND @Brand_ID IS NULL\n"
                        "BEGIN\n"
                        "    SET @Brand_ID = [{{schema}}].[fn_GetBrandID](@Brand_URL)\n"
                        "END"
                    ),
                },
            },
        },
    },
    "sp_child_tables": {
        "UserProfile": {
            "suffix": "Profile",
            "ignored_columns": ["User_ID", "Modified_By", "Modified_Date", "Created_By", "Created_Date"],
        },
        "UserSetting": {
            "suffix": "Setting",
            "ignored_columns": ["User_ID", "Modified_By", "Modified_Date", "Created_By", "Created_Date"],
        },
    },
    "checks": {"list_extra_parameters": {"Brand": 1}},
}


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """A fresh copy so tests can tweak it."""
    return copy.deepcopy(RAW_CONFIG)


@pytest.fixture
def config(raw_config, tmp_path) -> GeneratorConfig:
    raw_config["paths"] = {
        "data_dir": str(tmp_path / "data"),
        "output_dir": str(tmp_path / "output"),
        "framework_dir": str(tmp_path / "framework"),
    }
    return from_dict(raw_config)


@pytest.fixture
def tables(config) -> dict[str, Any]:
    return build_tables(COLUMN_ROWS, PARAMETER_ROWS, config)


@pytest.fixture
def renderer(config) -> Renderer:
    return Renderer(config)


@pytest.fixture
def column_rows() -> list[dict[str, Any]]:
    return copy.deepcopy(COLUMN_ROWS)


@pytest.fixture
def parameter_rows() -> list[dict[str, Any]]:
    return copy.deepcopy(PARAMETER_ROWS)
