"""
Unit tests for RequestStore.
"""

from dataclasses import replace

import pytest

from ledger_sync.core.exceptions import DuplicateKeyError, NotFoundError
from ledger_sync.ledger.models import MarkAccepted
from ledger_sync.ledger.store import RequestStore
from tests.mocks import make_address


class TestRequestStore:
    """Tests for RequestStore."""

    @pytest.fixture
    def notifications(self):
        return []

    @pytest.fixture
    def store(self, notifications):
        return RequestStore(on_updated=lambda: notifications.append(1))

    def test_add_and_has(self, store, sample_request):
        store.add(sample_request)

        assert store.has(sample_request.requester_address)
        assert store.size == 1

    def test_has_ignores_address_case(self, store, sample_request):
        address = make_address(0xABCDEF)
        store.add(replace(sample_request, requester_address=address))

        assert store.has("0x" + address[2:].upper())

    def test_add_duplicate_raises(self, store, sample_request):
        store.add(sample_request)

        with pytest.raises(DuplicateKeyError):
            store.add(replace(sample_request, requester_name="mallory"))

        assert store.size == 1
        assert store.get(sample_request.requester_address).requester_name == "alice"

    def test_enumeration_keeps_insertion_order(self, store, sample_request):
        addresses = [make_address(n) for n in (5, 1, 3)]
        for address in addresses:
            store.add(replace(sample_request, requester_address=address))

        assert [r.requester_address for r in store.get_all()] == addresses

    def test_get_all_returns_snapshot(self, store, sample_request):
        store.add(sample_request)

        snapshot = store.get_all()
        snapshot.clear()

        assert store.size == 1

    def test_update_marks_accepted(self, store, sample_request):
        store.add(sample_request)

        updated = store.update(sample_request.requester_address, MarkAccepted())

        assert updated.was_accepted is True
        assert store.get(sample_request.requester_address).was_accepted is True

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.update(make_address(99), MarkAccepted())

    def test_update_keeps_position(self, store, sample_request):
        for n in (1, 2, 3):
            store.add(replace(sample_request, requester_address=make_address(n)))

        store.update(make_address(2), MarkAccepted())

        assert [r.requester_address for r in store.get_all()] == [
            make_address(1), make_address(2), make_address(3),
        ]

    def test_clear_all(self, store, sample_request):
        for n in (1, 2, 3):
            store.add(replace(sample_request, requester_address=make_address(n)))

        removed = store.clear_all()

        assert removed == 3
        assert store.get_all() == []

    def test_one_notification_per_call(self, store, notifications, sample_request):
        for n in (1, 2, 3):
            store.add(replace(sample_request, requester_address=make_address(n)))
        assert len(notifications) == 3

        store.update(make_address(1), MarkAccepted())
        assert len(notifications) == 4

        store.clear_all()
        assert len(notifications) == 5

    def test_failed_operations_do_not_notify(self, store, notifications, sample_request):
        store.add(sample_request)
        notifications.clear()

        with pytest.raises(DuplicateKeyError):
            store.add(sample_request)
        with pytest.raises(NotFoundError):
            store.update(make_address(99), MarkAccepted())

        assert notifications == []

    def test_has_is_pure(self, store, notifications):
        store.has(make_address(1))

        assert notifications == []

    def test_callback_error_does_not_break_store(self, sample_request):
        def broken():
            raise RuntimeError("listener failed")

        store = RequestStore(on_updated=broken)
        store.add(sample_request)

        assert store.size == 1

    def test_contains(self, store, sample_request):
        store.add(sample_request)

        assert sample_request.requester_address in store
        assert make_address(99) not in store
        assert 42 not in store
