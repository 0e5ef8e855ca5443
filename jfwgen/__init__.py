"""Generate JFW framework C# sources and SQL Server stored procedures from table metadata."""

__version__ = "0.1.0"
