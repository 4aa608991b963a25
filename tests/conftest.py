"""
Pytest configuration and shared fixtures
"""
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest

from dbmodel.connectors.mysql import MySQLDatabase
from dbmodel.connectors.sqlite import SQLiteDatabase
from dbmodel.core.config import DatabaseConfig
from dbmodel.core.model import Model
from dbmodel.models.column import Column
from dbmodel.tables.mysql import MySQLTable
from dbmodel.tables.sqlite import SQLiteTable


class User(Model):
    """Model stamping creation and modification dates through event hooks"""

    def before_create(self, event):
        data = dict(event.get_arg(0) or {})
        data['created'] = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        event.set_arg(data)

    def before_update(self, event):
        data = dict(event.get_arg(0) or {})
        data['last_modified'] = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        event.set_arg(data)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_mysql_config():
    """Sample MySQL configuration"""
    return DatabaseConfig(
        type="mysql",
        host="localhost",
        port=3306,
        database="testdb",
        username="testuser",
        password="testpass"
    )


@pytest.fixture
def sample_sqlite_config():
    """Sample SQLite configuration"""
    return DatabaseConfig(type="sqlite", path=":memory:")


@pytest.fixture
def sqlite_database():
    """Connected in-memory SQLite database"""
    database = SQLiteDatabase({'path': ':memory:'})
    database.connect()
    yield database
    database.disconnect()


@pytest.fixture
def mysql_database(sample_mysql_config):
    """MySQL database whose statements are recorded instead of executed"""
    database = MySQLDatabase(sample_mysql_config.model_dump())
    database.execute = Mock(return_value=1)
    database.fetch_all = Mock(return_value=[])
    database.fetch_value = Mock(return_value=0)
    return database


@pytest.fixture
def user_columns():
    """Columns of the users table"""
    return [
        Column('id', 'int', primary_key=True, auto_increment=True),
        Column('name', 'string', length=100),
        Column('email', 'string', nullable=True),
        Column('active', 'bool', default=True),
        Column('created', 'datetime', nullable=True),
        Column('last_modified', 'datetime', nullable=True),
    ]


@pytest.fixture
def users_table(sqlite_database, user_columns):
    """Created users table"""
    table = SQLiteTable(sqlite_database, 'users', user_columns)
    table.create()
    return table


@pytest.fixture
def composite_table(sqlite_database):
    """Created table with a three column primary key"""
    table = SQLiteTable(sqlite_database, 'composite', [
        Column('id_1', 'int', primary_key=True),
        Column('id_2', 'string', primary_key=True),
        Column('id_3', 'bool', primary_key=True),
        Column('data', 'string', nullable=True),
    ])
    table.create()
    return table


@pytest.fixture
def mysql_users_table(mysql_database, user_columns):
    """Users table on the recording MySQL database"""
    return MySQLTable(mysql_database, 'users', user_columns)


@pytest.fixture
def user_rows():
    """Rows of the users table"""
    return [
        {'name': 'Alice', 'email': 'alice@example.com', 'active': True},
        {'name': 'Bob', 'email': 'bob@example.com', 'active': False},
        {'name': 'Carol', 'email': None, 'active': True},
    ]


@pytest.fixture
def populated_users_table(users_table, user_rows):
    """Users table holding the sample rows"""
    for row in user_rows:
        users_table.insert(row)
    return users_table


@pytest.fixture
def user_model_class():
    """Model class with before_create/before_update hooks"""
    return User


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way it was"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
