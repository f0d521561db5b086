"""Failure propagation and index drift handling in EntityIndex."""

import json
import logging

import pytest

from usaa.errors import ConflictError, StorageError
from usaa.store import MemoryStore, SqlStore
from usaa.tracking import CONTROLLER, EntityIndex


class FailingStore(MemoryStore):
    """MemoryStore that fails selected operations on matching key prefixes."""

    def __init__(self):
        super().__init__()
        self.fail = {}

    def _check(self, op, key):
        prefix = self.fail.get(op)
        if prefix is not None and key.startswith(prefix):
            raise StorageError(f'Storage {op} failed', details='connection reset')

    def get(self, key):
        self._check('get', key)
        return super().get(key)

    def put(self, key, value):
        self._check('put', key)
        super().put(key, value)

    def delete(self, key):
        self._check('delete', key)
        super().delete(key)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def index(failing_store, clock):
    index = EntityIndex(failing_store, CONTROLLER, clock=clock)
    yield index
    index.close()


class TestStorageFailures:

    def test_read_failure_propagates(self, index, failing_store):
        failing_store.fail['get'] = 'controller:'
        with pytest.raises(StorageError) as excinfo:
            index.lookup_by_id('123')
        assert excinfo.value.details == 'connection reset'

    def test_failed_index_write_leaves_documented_gap(self, index, failing_store):
        failing_store.fail['put'] = 'callsign:'

        with pytest.raises(StorageError):
            index.set_online('123', 'UAL1')

        # Record write went through in parallel; index write did not
        assert index.lookup_by_id('123').is_online
        assert index.lookup_by_callsign('UAL1') is None

        # A retry by the caller converges
        failing_store.fail.clear()
        index.set_online('123', 'UAL1')
        assert index.lookup_by_callsign('UAL1').cid == '123'

    def test_failed_delete_on_offline_propagates(self, index, failing_store):
        index.set_online('123', 'UAL1')
        failing_store.fail['delete'] = 'callsign:'

        with pytest.raises(StorageError):
            index.set_offline('123')

    def test_malformed_record_is_a_storage_error(self, index, failing_store):
        failing_store.put('controller:123', '{not json')

        with pytest.raises(StorageError, match='Malformed record') as excinfo:
            index.lookup_by_id('123')
        assert excinfo.value.details.startswith('controller:123')

    def test_malformed_record_breaks_listing(self, index, failing_store):
        index.set_online('1', 'UAL1')
        failing_store.put('controller:2', json.dumps({'cid': '2', 'status': 'busy'}))

        with pytest.raises(StorageError):
            index.list_online()


class TestIndexDrift:

    def test_index_entry_without_record_is_not_found(self, index, failing_store, caplog):
        failing_store.put('callsign:UAL1', '123')

        with caplog.at_level(logging.WARNING, logger='usaa.tracking.entity_index'):
            assert index.lookup_by_callsign('UAL1') is None

        assert 'points at missing controller 123' in caplog.text

    def test_index_entry_pointing_at_other_callsign_is_not_found(self, index, failing_store):
        index.set_online('123', 'UAL2')
        failing_store.put('callsign:UAL1', '123')

        assert index.lookup_by_callsign('UAL1') is None
        assert index.lookup_by_callsign('UAL2').cid == '123'

    def test_index_entry_without_record_still_blocks_the_callsign(self, index, failing_store):
        failing_store.put('callsign:UAL1', '999')

        with pytest.raises(ConflictError, match='already in use'):
            index.set_online('123', 'UAL1')

        assert failing_store.get('callsign:UAL1') == '999'
        assert failing_store.get('controller:123') is None

    def test_index_entry_of_offline_holder_still_blocks_the_callsign(self, index, failing_store):
        index.set_online('999', 'UAL1')
        index.set_offline('999')
        # Offline write landed but the index delete was lost
        failing_store.put('callsign:UAL1', '999')

        with pytest.raises(ConflictError):
            index.set_online('123', 'UAL1')

        assert index.lookup_by_id('123') is None
        assert failing_store.get('callsign:UAL1') == '999'


class BatchOnlySqlStore(SqlStore):
    """SqlStore that refuses single writes, proving batches are used."""

    def put(self, key, value):
        raise AssertionError(f'unexpected single put of {key}')

    def delete(self, key):
        raise AssertionError(f'unexpected single delete of {key}')


def test_transactional_store_receives_one_batch_per_operation(sql_store, clock):
    store = BatchOnlySqlStore(session_factory=sql_store._session_factory)
    index = EntityIndex(store, CONTROLLER, clock=clock)

    index.set_online('123', 'UAL1')
    index.set_online('123', 'UAL2')
    index.set_offline('123')
    index.set_online('123', 'UAL2')
    index.remove('123')

    assert store.list_keys('') == []
    index.close()
