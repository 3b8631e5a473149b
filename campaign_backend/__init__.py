# MySQL driver shim: allow using PyMySQL when mysqlclient isn't installed.
try:  # Prefer native mysqlclient (MySQLdb) if available
    import MySQLdb  # type: ignore  # noqa: F401
except ImportError:
    import pymysql

    pymysql.install_as_MySQLdb()
