"""
Unit tests for columns and type mapping
"""
import pytest

from dbmodel.core.exceptions import InvalidColumnType
from dbmodel.models.column import Column, ColumnType
from dbmodel.utils.type_mapping import TypeMapper


class TestColumn:
    """Test Column"""

    def test_type_from_string(self):
        """Test semantic type given as a string"""
        column = Column('age', 'int')
        assert column.type is ColumnType.INTEGER

    def test_type_is_case_insensitive(self):
        """Test upper case type names are accepted"""
        assert Column('flag', 'BOOL').type is ColumnType.BOOLEAN

    def test_invalid_type(self):
        """Test unknown type raises InvalidColumnType"""
        with pytest.raises(InvalidColumnType, match="VARCHAR"):
            Column('name', 'VARCHAR(255)')

    def test_invalid_type_is_value_error(self):
        """Test InvalidColumnType can be caught as ValueError"""
        with pytest.raises(ValueError):
            Column('name', 'unknown')

    def test_format_integer(self):
        """Test loose integer coercion"""
        column = Column('age', 'int')
        assert column.format('00') == 0
        assert column.format('42') == 42
        assert column.format('1.9') == 1
        assert column.format(True) == 1

    def test_format_float(self):
        """Test float coercion"""
        assert Column('price', 'float').format('2.5') == 2.5

    def test_format_non_numeric_strings(self):
        """Test strings that are not numbers coerce to zero"""
        assert Column('n', 'int', nullable=True).format('') == 0
        assert Column('n', 'int').format('abc') == 0
        assert Column('n', 'int').format('  ') == 0
        assert Column('price', 'float').format('') == 0.0
        assert Column('price', 'float').format('n/a') == 0.0

    def test_format_leading_number(self):
        """Test a leading number is kept from a mixed string"""
        assert Column('n', 'int').format('12abc') == 12
        assert Column('n', 'int').format(' -3.7 kg') == -3
        assert Column('price', 'float').format('2.5e1x') == 25.0
        assert Column('price', 'float').format('.5') == 0.5

    def test_format_boolean(self):
        """Test boolean coercion of driver values"""
        column = Column('active', 'bool')
        assert column.format(1) is True
        assert column.format(0) is False
        assert column.format('0') is False
        assert column.format('1') is True
        assert column.format('') is False

    def test_format_string(self):
        """Test string coercion"""
        column = Column('name', 'string')
        assert column.format(12) == '12'
        assert column.format(None) == ''

    def test_format_null_on_nullable(self):
        """Test None and 'null' stay None on a nullable column"""
        column = Column('email', 'string', nullable=True)
        assert column.format(None) is None
        assert column.format('NULL') is None

    def test_format_null_on_not_nullable(self):
        """Test null is coerced on a column that is not nullable"""
        assert Column('age', 'int').format(None) == 0

    def test_format_with_mapping(self):
        """Test per-type conversion override"""
        column = Column('name', 'string')
        assert column.format('abc', {ColumnType.STRING: str.upper}) == 'ABC'

    def test_default_value(self):
        """Test default value is formatted"""
        assert Column('active', 'bool', default='1').get_default_value() is True

    def test_flags(self):
        """Test flag accessors"""
        column = Column('id', 'int', primary_key=True, auto_increment=True)
        assert column.is_primary_key()
        assert column.is_auto_increment()
        assert not column.is_nullable()

    def test_from_database_type(self):
        """Test building a column from a driver type"""
        column = Column.from_database_type('name', 'varchar(64)', nullable=True)
        assert column.type is ColumnType.STRING
        assert column.database_type == 'VARCHAR(64)'
        assert column.nullable

    def test_differs_from(self):
        """Test definition comparison used by synchronize"""
        declared = Column('name', 'string')
        assert not declared.differs_from(Column.from_database_type('name', 'VARCHAR(255)'))
        assert declared.differs_from(Column('name', 'string', nullable=True))
        assert declared.differs_from(Column('name', 'text'))

    def test_differs_from_ignores_undeclared_default(self):
        """Test a live default is ignored when the column declares none"""
        assert not Column('age', 'int').differs_from(Column('age', 'int', default='0'))
        assert Column('age', 'int', default=5).differs_from(Column('age', 'int', default='0'))

    def test_differs_from_compares_formatted_defaults(self):
        """Test defaults are compared after coercion to the column type"""
        assert not Column('active', 'bool', default=True).differs_from(Column('active', 'bool', default='1'))
        assert not Column('name', 'string', default='x').differs_from(Column('name', 'string', default="'x'"))

    def test_to_dict(self):
        """Test dictionary conversion"""
        data = Column('id', 'int', primary_key=True).to_dict()
        assert data['type'] == 'int'
        assert data['primary_key'] is True


class TestTypeMapper:
    """Test TypeMapper"""

    @pytest.mark.parametrize('column,expected', [
        (Column('a', 'int'), 'INT(11)'),
        (Column('a', 'int', length=4), 'INT(4)'),
        (Column('a', 'float'), 'FLOAT(11)'),
        (Column('a', 'float', length='10,2'), 'DECIMAL(10,2)'),
        (Column('a', 'bool'), 'BOOLEAN'),
        (Column('a', 'string'), 'VARCHAR(255)'),
        (Column('a', 'string', length=32), 'VARCHAR(32)'),
        (Column('a', 'text'), 'TEXT'),
        (Column('a', 'datetime'), 'DATETIME'),
    ])
    def test_mysql_types(self, column, expected):
        """Test MySQL DDL types"""
        assert column.get_database_type('mysql') == expected

    def test_sqlite_auto_increment_key(self):
        """Test SQLite auto increment key is a bare INTEGER"""
        column = Column('id', 'int', primary_key=True, auto_increment=True)
        assert column.get_database_type('sqlite') == 'INTEGER'
        assert column.get_database_type('mysql') == 'INT(11)'

    def test_explicit_database_type(self):
        """Test explicit database type wins"""
        assert Column('a', 'string', database_type='CHAR(2)').get_database_type('mysql') == 'CHAR(2)'

    def test_unsupported_driver(self):
        """Test unknown driver raises"""
        with pytest.raises(ValueError, match="Unsupported driver"):
            Column('a', 'int').get_database_type('oracle')

    @pytest.mark.parametrize('db_type,expected', [
        ('tinyint(1)', 'bool'),
        ('INT(11)', 'int'),
        ('bigint unsigned', 'int'),
        ('double', 'float'),
        ('decimal(10,2)', 'float'),
        ('TEXT', 'text'),
        ('DATETIME', 'datetime'),
        ('VARCHAR(255)', 'string'),
        ('blob', 'string'),
    ])
    def test_from_database_type(self, db_type, expected):
        """Test naive reverse mapping"""
        assert TypeMapper.from_database_type(db_type) == expected
