from types import SimpleNamespace

from fakes import FakeClock
from mediakeeper.datatypes.pending_datatypes import PendingKey
from mediakeeper.services.pending_registry import PendingRegistry


def _msg(message_id: int):
    return SimpleNamespace(id=message_id)


def test_register_and_consume_once():
    registry = PendingRegistry(clock=FakeClock())
    key = PendingKey.of(42, 500)

    registry.register_pending(key, _msg(1))

    entry = registry.consume_if_present(key)
    assert entry is not None
    assert entry.message.id == 1
    assert registry.consume_if_present(key) is None
    assert len(registry) == 0


def test_keys_match_across_int_and_str_ids():
    registry = PendingRegistry(clock=FakeClock())
    registry.register_pending(PendingKey.of(42, 500), _msg(1))

    assert PendingKey.of("42", "500") in registry
    assert registry.consume_if_present(PendingKey.of("42", 500)) is not None


def test_same_key_last_write_wins():
    clock = FakeClock()
    registry = PendingRegistry(clock=clock)
    key = PendingKey.of(42, 500)

    registry.register_pending(key, _msg(1))
    clock.advance(1.0)
    registry.register_pending(key, _msg(2))

    assert len(registry) == 1
    entry = registry.consume_if_present(key)
    assert entry.message.id == 2
    assert entry.enqueued_at == 1.0


def test_sweep_returns_only_expired_entries_and_removes_them():
    clock = FakeClock()
    registry = PendingRegistry(clock=clock)
    old_key = PendingKey.of(1, 500)
    new_key = PendingKey.of(2, 500)

    registry.register_pending(old_key, _msg(1))
    clock.advance(1.0)
    registry.register_pending(new_key, _msg(2))
    clock.advance(0.6)

    expired = registry.sweep_expired(clock(), 1.5)

    assert [entry.key for entry in expired] == [old_key]
    assert old_key not in registry
    assert new_key in registry
    assert registry.sweep_expired(clock(), 1.5) == []


def test_sweep_requires_age_to_exceed_window():
    clock = FakeClock()
    registry = PendingRegistry(clock=clock)
    registry.register_pending(PendingKey.of(1, 500), _msg(1))

    clock.advance(1.5)
    assert registry.sweep_expired(clock(), 1.5) == []

    clock.advance(0.01)
    assert len(registry.sweep_expired(clock(), 1.5)) == 1


def test_sweep_orders_oldest_first():
    clock = FakeClock()
    registry = PendingRegistry(clock=clock)
    for author in (3, 1, 2):
        registry.register_pending(PendingKey.of(author, 500), _msg(author))
        clock.advance(0.1)
    clock.advance(5)

    expired = registry.sweep_expired(clock(), 1.5)

    assert [entry.message.id for entry in expired] == [3, 1, 2]


def test_consumed_entry_is_never_swept():
    clock = FakeClock()
    registry = PendingRegistry(clock=clock)
    key = PendingKey.of(42, 500)
    registry.register_pending(key, _msg(1))

    clock.advance(0.1)
    assert registry.consume_if_present(key) is not None

    clock.advance(10)
    assert registry.sweep_expired(clock(), 1.5) == []


def test_discard_message_drops_only_that_message():
    registry = PendingRegistry(clock=FakeClock())
    registry.register_pending(PendingKey.of(42, 500), _msg(1))
    registry.register_pending(PendingKey.of(43, 500), _msg(2))

    assert registry.discard_message(99) is None
    dropped = registry.discard_message(1)

    assert dropped is not None
    assert dropped.key == PendingKey.of(42, 500)
    assert PendingKey.of(42, 500) not in registry
    assert PendingKey.of(43, 500) in registry
    assert registry.discard_message(1) is None
