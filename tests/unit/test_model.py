"""
Unit tests for Model
"""
import copy
import gc
import weakref

import pytest
from unittest.mock import Mock

from dbmodel.core.config import ModelConfig
from dbmodel.core.exceptions import MissingId, OperationNotRevertible, UnbindableModel
from dbmodel.core.model import Model, ModelState
from dbmodel.models.identity import CompositeId, SingleId
from dbmodel.models.query import Query
from dbmodel.operations.dispatcher import EventDispatcher
from dbmodel.operations.operation import Create, Delete, Read, Update
from dbmodel.validation.checks import is_not_empty
from dbmodel.validation.validator import Field, Rule, Validator


def stored_row(table, row_id):
    return table.get(Query({'id': row_id}, limit=1))


class TestModelIdentity:
    """Test id handling"""

    def test_new_model(self, users_table):
        """Test a model without id or data"""
        model = Model(users_table)
        assert model.get_state() is ModelState.EMPTY
        assert model.get_id() is None
        assert model.exists() is False
        assert model.get_data() == {}
        assert model.get_data('name') is None

    def test_scalar_id_is_formatted(self, users_table):
        """Test ids are coerced to the key column type"""
        assert Model(users_table, '3').get_id() == 3
        assert Model(users_table, {'id': '5'}).get_id() == 5
        assert Model(users_table, 5).id == SingleId(5)

    def test_composite_id(self, composite_table):
        """Test composite ids from positions and mappings"""
        positional = Model(composite_table, [1, 'a', True])
        mapped = Model(composite_table, {'id_3': 1, 'id_2': 'a', 'id_1': '1'})

        expected = {'id_1': 1, 'id_2': 'a', 'id_3': True}
        assert positional.get_id() == expected
        assert mapped.get_id() == expected
        assert list(mapped.get_normalized_id()) == ['id_1', 'id_2', 'id_3']

    def test_positional_id_length_mismatch(self, composite_table):
        """Test a positional id not matching the key is unusable"""
        model = Model(composite_table, [1, 'a'])

        assert model.id == CompositeId(())
        assert model.get_normalized_id() == {}
        assert model.exists() is False
        with pytest.raises(MissingId):
            model.read()

    def test_single_id_on_composite_key(self, composite_table):
        """Test a scalar id maps to the first key column"""
        assert Model(composite_table, 4).get_normalized_id() == {'id_1': 4}

    def test_binding_field_name(self, users_table, composite_table):
        """Test join column names"""
        assert Model(users_table).get_binding_field_name() == 'users_id'
        with pytest.raises(UnbindableModel):
            Model(composite_table).get_binding_field_name()


class TestModelReads:
    """Test reading through the cache"""

    def test_get_data(self, populated_users_table):
        """Test fields are read from storage"""
        model = Model(populated_users_table, 2)

        assert model.get_data('name') == 'Bob'
        assert model.get_data(['name', 'active']) == {'name': 'Bob', 'active': False}
        assert set(model.get_data()) == {'name', 'email', 'active', 'created', 'last_modified'}

    def test_cached_fields_are_not_read_again(self, populated_users_table):
        """Test only missing fields hit storage"""
        populated_users_table.get = Mock(wraps=populated_users_table.get)
        model = Model(populated_users_table, 1)

        model.get_data('name')
        model.get_data('name')
        assert populated_users_table.get.call_count == 1

        model.get_data('email')
        assert populated_users_table.get.call_count == 2

    def test_read_records_history(self, populated_users_table):
        """Test reads go through the operation queue"""
        model = Model(populated_users_table, 1)
        model.get_data('name')
        assert [operation.name for operation in model.operations.history] == ['read']

    def test_read_missing_row(self, populated_users_table):
        """Test reading an absent row yields nothing"""
        model = Model(populated_users_table, 99)
        assert model.execute(Read()) == {}
        assert model.get_data('name') is None

    def test_exists_is_memoized(self, populated_users_table):
        """Test existence is looked up once per id"""
        populated_users_table.isset = Mock(wraps=populated_users_table.isset)
        model = Model(populated_users_table, 1)

        assert model.exists() is True
        assert model.exists() is True
        assert populated_users_table.isset.call_count == 1

        model.set_id(99)
        assert model.exists() is False
        assert populated_users_table.isset.call_count == 2

    def test_init_from_storage(self, populated_users_table):
        """Test a model loaded from a query"""
        populated_users_table.isset = Mock(wraps=populated_users_table.isset)
        model = Model(populated_users_table).init_from_storage(Query({'name': 'Bob'}))

        assert model.get_id() == 2
        assert model.get_state() is ModelState.NOP
        assert model.get_data('email') == 'bob@example.com'
        assert model.exists() is True
        populated_users_table.isset.assert_not_called()

    def test_init_from_storage_without_match(self, populated_users_table):
        """Test an unmatched query leaves the model empty"""
        model = Model(populated_users_table).init_from_storage(Query({'name': 'Nobody'}))
        assert model.get_id() is None

    def test_init_from_data(self, users_table):
        """Test a row splits into id and data"""
        model = Model(users_table).init_from_data({'id': 8, 'name': 'Row'})
        assert model.get_id() == 8
        assert model.get_data('name') == 'Row'
        assert not model.require_action()


class TestModelWrites:
    """Test staged writes"""

    def test_buffered_create(self, users_table):
        """Test create is flushed when the id is needed"""
        model = Model(users_table)
        assert model.execute(Create(), {'name': 'Dan', 'email': 'dan@example.com'}) is True

        assert model.get_state() is ModelState.CREATE
        assert model.get_changed_fields() == ['name', 'email']
        assert users_table.count(Query()) == 0

        assert model.get_id() == 1
        assert model.get_state() is ModelState.NOP
        assert model.get_changed_fields() == []
        assert stored_row(users_table, 1)['name'] == 'Dan'

    def test_unbuffered_create(self, populated_users_table):
        """Test create is flushed at once without buffering"""
        model = Model(populated_users_table, buffering=False)
        model.create({'name': 'Eve'})

        assert populated_users_table.count(Query()) == 4
        assert model.get_id() == 4
        assert model.exists() is True

    def test_create_with_key(self, users_table):
        """Test key columns in the data become the id"""
        model = Model(users_table)
        model.create({'id': 7, 'name': 'Gus'})

        assert model.get_id() == 7
        assert 'id' not in model.get_changed_fields()
        model.close()
        assert stored_row(users_table, 7)['name'] == 'Gus'

    def test_create_stays_create_after_update(self, users_table):
        """Test update on a pending create keeps the insert"""
        model = Model(users_table)
        model.create({'name': 'Ann'})
        model.update({'email': 'ann@example.com'})

        assert model.get_state() is ModelState.CREATE
        model.execute_actions()
        assert stored_row(users_table, 1)['email'] == 'ann@example.com'

    def test_update_marks_changed_fields_only(self, populated_users_table):
        """Test unchanged values are not written"""
        model = Model(populated_users_table, 1)
        model.get_data()
        model.update({'name': 'Alice', 'email': 'new@example.com', 'unknown': 1})

        assert model.get_state() is ModelState.UPDATE
        assert model.get_changed_fields() == ['email']

        assert model.execute_actions() is True
        assert model.get_changed_fields() == []
        assert stored_row(populated_users_table, 1)['email'] == 'new@example.com'

    def test_update_without_cache(self, populated_users_table):
        """Test updating fields never read"""
        model = Model(populated_users_table, 2, buffering=False)
        model.update({'name': 'Robert'})
        assert stored_row(populated_users_table, 2)['name'] == 'Robert'

    def test_update_nothing_changed(self, populated_users_table):
        """Test no action is required when nothing changed"""
        model = Model(populated_users_table, 1)
        model.update({'unknown': 1})
        assert not model.require_action()

    def test_failed_insert_keeps_pending_state(self, users_table):
        """Test storage errors are reported as a failed flush"""
        model = Model(users_table, buffering=False)
        assert model.create({'name': None}) is False
        assert model.get_state() is ModelState.CREATE
        assert users_table.count(Query()) == 0
        model.reset()

    def test_delete(self, populated_users_table):
        """Test delete removes the row and resets the model"""
        model = Model(populated_users_table, 1)
        assert model.execute(Delete()) is True

        assert populated_users_table.count(Query()) == 2
        assert model.get_state() is ModelState.EMPTY
        assert model.get_id() is None

    def test_delete_missing_row(self, populated_users_table):
        """Test deleting an absent row still resets and succeeds"""
        model = Model(populated_users_table, 99)
        assert model.delete() is True
        assert model.get_id() is None
        assert populated_users_table.count(Query()) == 3

    def test_create_replaces_changed_fields(self, populated_users_table):
        """Test create drops fields left dirty by an earlier update"""
        model = Model(populated_users_table, 1)
        model.update({'email': 'changed@example.com'})
        model.create({'name': 'Fresh'})

        assert model.get_changed_fields() == ['name']
        model.reset()

    def test_flush_on_release(self, users_table):
        """Test a pending write is flushed when the last reference goes away"""
        model = Model(users_table)
        model.create({'name': 'Ghost'})
        released = weakref.ref(model)
        del model

        assert released() is None
        assert users_table.count(Query()) == 1

    def test_flush_when_out_of_scope(self, users_table, user_model_class):
        """Test a model with hooks flushes when its scope ends, without the garbage collector"""
        def stage():
            model = user_model_class(users_table)
            model.execute(Create(), {'name': 'Scoped'})

        gc.disable()
        try:
            stage()
            assert users_table.count(Query({'name': 'Scoped'})) == 1
        finally:
            gc.enable()

    def test_context_manager_flushes(self, users_table):
        """Test leaving the block flushes"""
        with Model(users_table) as model:
            model.create({'name': 'Ctx'})
        assert users_table.count(Query({'name': 'Ctx'})) == 1

    def test_from_config(self, users_table):
        """Test model options from configuration"""
        model = Model.from_config(users_table, ModelConfig(buffering=False, strict_revert=True))
        assert model.buffering is False
        assert model.strict_revert is True


class TestModelEvents:
    """Test hooks, listeners and validation"""

    def test_hooks_stamp_dates(self, users_table, user_model_class):
        """Test before_create and before_update hooks change the data"""
        user = user_model_class(users_table)
        user.execute(Create(), {'name': 'Hook'})
        user_id = user.get_id()

        row = stored_row(users_table, user_id)
        assert row['created']
        assert not row['last_modified']

        user.execute(Update(), {'name': 'Hooked'})
        user.execute_actions()
        row = stored_row(users_table, user_id)
        assert row['name'] == 'Hooked'
        assert row['last_modified']

    def test_listener_cancels_operation(self, populated_users_table):
        """Test a before listener result replaces the operation"""
        dispatcher = EventDispatcher()
        dispatcher.add_listener('before_delete', lambda event: event.set_result(False))
        model = Model(populated_users_table, 1, event_dispatcher=dispatcher)

        assert model.execute(Delete()) is False
        assert populated_users_table.count(Query()) == 3

    def test_operation_uses_model_dispatcher(self, users_table):
        """Test operations are wired to the dispatcher of the model"""
        dispatcher = EventDispatcher()
        listener = Mock()
        dispatcher.add_listener('after_create', listener)
        model = Model(users_table, event_dispatcher=dispatcher)

        model.execute(Create(), {'name': 'Wired'})
        listener.assert_called_once()
        model.reset()

    def test_validation_failure(self, users_table):
        """Test invalid arguments skip the operation"""
        validator = Validator(Field('name', [Rule(is_not_empty)]))
        model = Model(users_table)

        assert model.execute(Create(), {'name': ''}, validator=validator) is False
        assert model.get_state() is ModelState.EMPTY
        assert model.get_errors().to_dict() == {'global': [], 'form': {'name': 'Field name is mandatory'}}

    def test_validate_then_execute(self, users_table):
        """Test valid arguments run the operation"""
        validator = Validator(Field('name', [Rule(is_not_empty)]))
        model = Model(users_table, buffering=False)

        assert model.validate_then_execute(Create(), validator, {'name': 'Valid'}) is True
        assert not model.get_errors().has_errors()
        assert users_table.count(Query()) == 1

    def test_revert_update(self, populated_users_table):
        """Test a reverted update restores the previous values"""
        model = Model(populated_users_table, 1)
        model.operations.add(Update(can_revert=True), [{'name': 'Changed'}])
        model.operations.execute_queue(clear=True)
        assert model.get_data('name') == 'Changed'

        model.operations.revert_queue(clear=True)
        model.execute_actions()

        assert model.get_data('name') == 'Alice'
        assert stored_row(populated_users_table, 1)['name'] == 'Alice'

    def test_strict_revert_from_model(self, populated_users_table):
        """Test strict revert set on the model reaches its operations"""
        model = Model(populated_users_table, 1, strict_revert=True)
        with pytest.raises(OperationNotRevertible):
            model.execute(Update(can_revert=True), 'name')


class TestModelCopy:
    """Test copies"""

    def test_copy_is_independent(self, populated_users_table):
        """Test a copy has its own data, dispatcher and queue"""
        model = Model(populated_users_table, 1)
        model.get_data()
        clone = copy.copy(model)

        clone.update({'name': 'Clone'})
        assert model.get_data('name') == 'Alice'
        assert clone.get_id() == 1
        assert clone.event_dispatcher is not model.event_dispatcher
        assert clone.operations.target is clone
        clone.reset()

    def test_copy_keeps_hooks(self, users_table, user_model_class):
        """Test hooks of a copy are connected to its own dispatcher"""
        clone = copy.copy(user_model_class(users_table))
        assert clone.event_dispatcher.has_listeners('before_create')
        assert clone.event_dispatcher.get_listeners('before_create')[0].__self__ is clone
