"""
Integration tests against a running MySQL server
Set DBMODEL_TEST_MYSQL_HOST (and optionally _PORT, _DATABASE, _USER, _PASSWORD) to run them
"""
import os

import pytest

from dbmodel.connectors.factory import ConnectorFactory
from dbmodel.core.model import Model
from dbmodel.core.models_list import ModelsList
from dbmodel.models.column import Column
from dbmodel.models.query import Query


# Mark all tests in this module as integration tests
pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv('DBMODEL_TEST_MYSQL_HOST'), reason="Requires running MySQL"),
]


@pytest.fixture
def mysql_live():
    """Connected MySQL database"""
    database = ConnectorFactory.create_database('mysql', {
        'host': os.getenv('DBMODEL_TEST_MYSQL_HOST', 'localhost'),
        'port': int(os.getenv('DBMODEL_TEST_MYSQL_PORT', '3306')),
        'database': os.getenv('DBMODEL_TEST_MYSQL_DATABASE', 'dbmodel_test'),
        'username': os.getenv('DBMODEL_TEST_MYSQL_USER', 'root'),
        'password': os.getenv('DBMODEL_TEST_MYSQL_PASSWORD', ''),
    })
    with database:
        yield database


@pytest.fixture
def live_users(mysql_live, user_columns):
    """Fresh users table"""
    table = ConnectorFactory.create_table(mysql_live, 'dbmodel_users', user_columns)
    table.create(replace=True)
    yield table
    table.remove()


class TestMySQLFlow:
    """End-to-end model flow on MySQL"""

    def test_model_lifecycle(self, live_users):
        """Test create, read, update and delete"""
        model = Model(live_users, buffering=False)
        model.create({'name': 'Alice', 'email': 'alice@example.com'})
        user_id = model.get_id()
        assert user_id == 1

        loaded = Model(live_users, user_id)
        assert loaded.get_data('name') == 'Alice'
        assert loaded.get_data('active') is True

        loaded.update({'name': 'Alicia'})
        loaded.execute_actions()
        assert live_users.get(Query({'id': user_id}, limit=1))['name'] == 'Alicia'

        assert loaded.delete() is True
        assert live_users.count(Query()) == 0

    def test_synchronize(self, live_users, mysql_live, user_columns):
        """Test a new column is added"""
        table = ConnectorFactory.create_table(
            mysql_live, 'dbmodel_users', user_columns + [Column('age', 'int', default=0)]
        )
        table.synchronize()
        assert 'age' in table.get_db_columns()

    def test_pagination(self, live_users, user_rows):
        """Test pages are clamped"""
        for row in user_rows:
            live_users.insert(row)

        models = ModelsList(Model(live_users), Query(order=['id'])).get_data(page=99, on_page=2)
        assert models.page == 2
        assert len(models) == 1

    def test_transaction_rollback(self, live_users, mysql_live):
        """Test nested rollback undoes the outer transaction"""
        mysql_live.begin_transaction()
        mysql_live.begin_transaction()
        live_users.insert({'name': 'Temp'})
        mysql_live.rollback()
        mysql_live.rollback()

        assert live_users.count(Query()) == 0
