"""Convert SQL Server names and types to their C# counterparts.

Word splitting follows lodash's camelCase rules, which the consuming
framework's property names were generated with:

  Brand_ID          -> brandId / BrandId
  Email_Address     -> emailAddress / EmailAddress
  @Sort_Data_Field  -> sortDataField / SortDataField
  Address1          -> address1 / Address1

Types:
  nvarchar, 50      -> nvarchar(50)
  varchar, -1       -> varchar(MAX)
  datetime nullable -> DateTime?
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# SQL Server data types to C# data types
SQL_TO_DOTNET: dict[str, str] = {
    "bigint": "long",
    "binary": "byte[]",
    "bit": "bool",
    "char": "string",
    "date": "DateTime",
    "datetime": "DateTime",
    "datetime2": "DateTime",
    "datetimeoffset": "DateTimeOffset",
    "decimal": "decimal",
    "float": "double",
    "image": "byte[]",
    "int": "int",
    "money": "decimal",
    "nchar": "string",
    "ntext": "string",
    "numeric": "decimal",
    "nvarchar": "string",
    "real": "float",
    "rowversion": "byte[]",
    "smalldatetime": "DateTime",
    "smallint": "short",
    "smallmoney": "decimal",
    "text": "string",
    "time": "TimeSpan",
    "timestamp": "byte[]",
    "tinyint": "byte",
    "uniqueidentifier": "Guid",
    "varbinary": "byte[]",
    "varchar": "string",
    "xml": "string",
}

UNKNOWN_DOTNET_TYPE = "object"

_LENGTH_TYPES = {"nvarchar", "varchar", "char", "nchar"}

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def words(name: str) -> list[str]:
    """Split an identifier into words on separators and case changes."""
    return _WORD_RE.findall(name)


def camel_case(name: str) -> str:
    """Convert a SQL identifier to camelCase (Brand_ID -> brandId)."""
    name = name.replace("_iOS", "iO_s")
    parts = words(name)
    if not parts:
        return ""
    return parts[0].lower() + "".join(p.capitalize() for p in parts[1:])


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def pascal_case(name: str) -> str:
    """Convert a SQL identifier to PascalCase (Brand_ID -> BrandId)."""
    return upper_first(camel_case(name))


def to_dotnet_type(sql_type: str) -> str:
    """Map a SQL Server type name to its C# type, or 'object' if unmapped."""
    dotnet = SQL_TO_DOTNET.get(sql_type.lower())
    if dotnet is None:
        logger.warning("No C# type mapping for SQL type '%s', using %s", sql_type, UNKNOWN_DOTNET_TYPE)
        return UNKNOWN_DOTNET_TYPE
    return dotnet


def sql_type_with_length(data_type: str, max_length: int | None) -> str:
    """Append the declared length to character types (-1 means MAX)."""
    if data_type in _LENGTH_TYPES:
        length = "MAX" if max_length is None or max_length < 0 else str(max_length)
        return f"{data_type}({length})"
    return data_type


def nullable(dotnet_type: str) -> str:
    """Return the nullable form of a C# type; strings are left as-is."""
    if "?" in dotnet_type or dotnet_type == "string":
        return dotnet_type
    return dotnet_type + "?"


def is_date_time(dotnet_type: str) -> bool:
    return dotnet_type in ("DateTime", "DateTime?")


def indefinite_article(word: str) -> str:
    return "an" if word and word[0].lower() in "aeiou" else "a"


_NUMBER_LITERAL_RE = re.compile(r"-?\d+(\.\d+)?")
_STRING_LITERAL_RE = re.compile(r"N?'((?:[^']|'')*)'", re.IGNORECASE)


def is_sql_literal(default: str) -> bool:
    """True for constant defaults (numbers, quoted strings, NULL); False for expressions like getutcdate."""
    return bool(
        _NUMBER_LITERAL_RE.fullmatch(default)
        or _STRING_LITERAL_RE.fullmatch(default)
        or default.upper() == "NULL"
    )


def csharp_literal(default: str) -> str | None:
    """C# form of a column default, or None when it has no C# constant.

      1        -> 1
      false    -> false
      N'a''b'  -> "a'b"
      newid    -> None
    """
    if default in ("true", "false") or _NUMBER_LITERAL_RE.fullmatch(default):
        return default
    match = _STRING_LITERAL_RE.fullmatch(default)
    if match:
        text = match.group(1).replace("''", "'")
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return None
