"""Tests for cache key derivation and the cache stores."""

import json
import threading
from unittest.mock import MagicMock

import pytest
import redis

from flightsearch.cache import (
    MemoryCacheStore,
    RedisCacheStore,
    build_cache_store,
    make_cache_key,
)
from flightsearch.config import CacheConfig
from flightsearch.models import Endpoint


class TestCacheKey:
    """Tests for make_cache_key."""

    def test_parameter_order_does_not_matter(self):
        first = make_cache_key('flights', {'dep_iata': 'LHR', 'arr_iata': 'JFK', 'limit': '10'})
        second = make_cache_key('flights', {'limit': '10', 'arr_iata': 'JFK', 'dep_iata': 'LHR'})
        assert first == second

    def test_credential_excluded(self):
        plain = make_cache_key('flights', {'flight_iata': 'BA117'})
        with_key = make_cache_key('flights', {'flight_iata': 'BA117', 'access_key': 'secret'})
        assert plain == with_key
        assert 'secret' not in with_key

    def test_debug_flag_excluded(self):
        plain = make_cache_key('flights', {'flight_iata': 'BA117'})
        forced = make_cache_key('flights', {'flight_iata': 'BA117', 'debug': '1'})
        assert plain == forced

    def test_endpoint_changes_key(self):
        params = {'search': 'London'}
        assert make_cache_key('airports', params) != make_cache_key('cities', params)

    def test_values_change_key(self):
        assert make_cache_key('flights', {'flight_number': '1'}) != make_cache_key('flights', {'flight_number': '2'})

    def test_enum_endpoint_matches_string(self):
        params = {'limit': '1'}
        assert make_cache_key(Endpoint.AIRCRAFT_TYPES, params) == make_cache_key('aircraft_types', params)

    def test_key_format(self):
        key = make_cache_key('flights', {})
        assert key.startswith('aviationstack_flights_')
        assert len(key) == len('aviationstack_flights_') + 32


class TestMemoryCacheStore:
    """Tests for the in-process cache."""

    def test_set_and_get(self):
        store = MemoryCacheStore()
        store.set('k', {'data': [1]}, ttl_seconds=60)
        assert store.get('k') == {'data': [1]}

    def test_missing_key(self):
        assert MemoryCacheStore().get('missing') is None

    def test_expired_entry_not_returned(self):
        store = MemoryCacheStore()
        store.set('k', {'data': []}, ttl_seconds=60)
        store.get_entry('k').stored_at -= 61

        assert store.get('k') is None
        # Expired entries are dropped on read
        assert store.get_entry('k') is None

    def test_set_overwrites(self):
        store = MemoryCacheStore()
        store.set('k', {'v': 1}, ttl_seconds=60)
        store.set('k', {'v': 2}, ttl_seconds=60)
        assert store.get('k') == {'v': 2}
        assert len(store) == 1

    def test_forget(self):
        store = MemoryCacheStore()
        store.set('k', {'v': 1}, ttl_seconds=60)
        store.forget('k')
        store.forget('never-set')
        assert store.get('k') is None

    def test_clear(self):
        store = MemoryCacheStore()
        store.set('a', {}, ttl_seconds=60)
        store.set('b', {}, ttl_seconds=60)
        store.clear()
        assert len(store) == 0

    def test_evicts_oldest_when_full(self):
        store = MemoryCacheStore(max_entries=10)
        for i in range(10):
            store.set(f'k{i}', {'i': i}, ttl_seconds=60)
            store.get_entry(f'k{i}').stored_at = 1000 + i

        store.set('k10', {'i': 10}, ttl_seconds=60)

        assert len(store) == 10
        assert store.get_entry('k0') is None
        assert store.get('k10') == {'i': 10}

    def test_last_write_wins(self):
        store = MemoryCacheStore()
        store.set('k', {'data': ['first']}, ttl_seconds=60)
        store.set('k', {'data': ['second']}, ttl_seconds=60)
        assert store.get('k') == {'data': ['second']}

    def test_concurrent_readers_and_writers(self):
        store = MemoryCacheStore(max_entries=10)
        errors = []
        bad_reads = []

        def writer(n):
            try:
                for i in range(300):
                    store.set(f'k{i % 25}', {'writer': n, 'seq': i, 'data': [n, i]}, ttl_seconds=60)
            except Exception as e:
                errors.append(e)

        def reader():
            try:
                for i in range(300):
                    payload = store.get(f'k{i % 25}')
                    if payload is not None and payload.get('data') != [payload.get('writer'), payload.get('seq')]:
                        bad_reads.append(payload)
                    len(store)
                    store.stats
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert bad_reads == []
        assert len(store) <= store.max_entries

    def test_stats(self):
        store = MemoryCacheStore(max_entries=5)
        store.set('k', {}, ttl_seconds=60)
        store.get('k')
        store.get('other')

        stats = store.stats
        assert stats['backend'] == 'memory'
        assert stats['entries'] == 1
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5


class TestRedisCacheStore:
    """Tests for the Redis-backed cache using a mocked client."""

    @pytest.fixture
    def mock_redis(self):
        return MagicMock()

    @pytest.fixture
    def store(self, mock_redis):
        return RedisCacheStore(client=mock_redis)

    def test_get_hit(self, store, mock_redis):
        mock_redis.get.return_value = json.dumps({'data': [{'airport_name': 'Heathrow'}]})
        assert store.get('k') == {'data': [{'airport_name': 'Heathrow'}]}
        mock_redis.get.assert_called_once_with('k')

    def test_get_miss(self, store, mock_redis):
        mock_redis.get.return_value = None
        assert store.get('k') is None
        assert store.stats['misses'] == 1

    def test_set_uses_setex(self, store, mock_redis):
        store.set('k', {'data': []}, ttl_seconds=900)
        mock_redis.setex.assert_called_once_with('k', 900, json.dumps({'data': []}))

    def test_forget_deletes(self, store, mock_redis):
        store.forget('k')
        mock_redis.delete.assert_called_once_with('k')

    def test_redis_outage_is_a_miss(self, store, mock_redis):
        mock_redis.get.side_effect = redis.ConnectionError('down')
        assert store.get('k') is None
        assert store.stats['errors'] == 1

    def test_failed_write_is_logged_not_raised(self, store, mock_redis):
        mock_redis.setex.side_effect = redis.ConnectionError('down')
        store.set('k', {'data': []}, ttl_seconds=60)
        assert store.stats['errors'] == 1

    def test_undecodable_entry_discarded(self, store, mock_redis):
        mock_redis.get.return_value = 'not json'
        assert store.get('k') is None
        mock_redis.delete.assert_called_once_with('k')

    def test_clear_only_removes_prefixed_keys(self, store, mock_redis):
        mock_redis.scan_iter.return_value = iter(['aviationstack_flights_abc'])
        store.clear()
        mock_redis.scan_iter.assert_called_once_with(match='aviationstack_*')
        mock_redis.delete.assert_called_once_with('aviationstack_flights_abc')


class TestBuildCacheStore:

    def test_memory_backend(self):
        store = build_cache_store(CacheConfig(backend='memory', max_entries=42))
        assert isinstance(store, MemoryCacheStore)
        assert store.max_entries == 42

    def test_redis_backend(self):
        # redis.from_url does not connect until the first command
        store = build_cache_store(CacheConfig(backend='redis', redis_url='redis://localhost:6379/1'))
        assert isinstance(store, RedisCacheStore)
