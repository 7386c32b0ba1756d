import random

from backend.app.models.session import ConversationAction
from backend.app.services import conversations
from backend.app.services.repair import new_record


def test_create_becomes_active_and_sorts_last(config):
    record = new_record(config, created_at=5000)
    conv = conversations.create(record, created_at=5000)

    assert record.active_conversation_id == conv.id
    assert conv.created_at == 5001
    assert conv.title == "New chat 2"
    assert conv.history == []


def test_create_is_monotonic_when_clock_goes_backwards(config):
    record = new_record(config, created_at=10_000)
    first = conversations.create(record, created_at=9_000)
    second = conversations.create(record, created_at=1)
    assert record.conversations["conv_10000"].created_at < first.created_at < second.created_at
    assert len({first.id, second.id, "conv_10000"}) == 3


def test_delete_active_reverts_to_previous(config):
    record = new_record(config, created_at=100)
    a = conversations.create(record, created_at=200)
    b = conversations.create(record, created_at=300)
    assert record.active_conversation_id == b.id

    assert conversations.delete(record, b.id)
    assert record.active_conversation_id == a.id


def test_delete_uses_numeric_not_lexical_order(config):
    record = new_record(config, created_at=9)
    newer = conversations.create(record, created_at=10)
    conversations.switch(record, "conv_9")
    spare = conversations.create(record, created_at=11)
    conversations.delete(record, spare.id)
    assert record.active_conversation_id == newer.id


def test_delete_only_conversation_clears_pointer(config):
    record = new_record(config, created_at=1)
    assert conversations.delete(record, "conv_1")
    assert record.conversations == {}
    assert record.active_conversation_id is None


def test_delete_inactive_keeps_pointer(config):
    record = new_record(config, created_at=1)
    conversations.create(record, created_at=2)
    conversations.delete(record, "conv_1")
    assert record.active_conversation_id == "conv_2"


def test_missing_ids_are_noops(config):
    record = new_record(config, created_at=1)
    before = record.model_copy(deep=True)
    assert not conversations.delete(record, "conv_nope")
    assert not conversations.switch(record, "conv_nope")
    assert not conversations.rename(record, "conv_nope", "Title")
    assert not conversations.delete(record, None)
    assert record == before


def test_rename_trims_and_rejects_blank(config):
    record = new_record(config, created_at=1)
    assert not conversations.rename(record, "conv_1", "   ")
    assert record.conversations["conv_1"].title == "New chat 1"
    assert conversations.rename(record, "conv_1", "  Trip plans ")
    assert record.conversations["conv_1"].title == "Trip plans"


def test_apply_action_dispatch(config):
    record = new_record(config, created_at=1)
    assert conversations.apply_action(record, ConversationAction.CREATE)
    assert len(record.conversations) == 2
    assert conversations.apply_action(record, ConversationAction.SWITCH, "conv_1")
    assert record.active_conversation_id == "conv_1"


def test_active_pointer_never_dangles(config):
    rng = random.Random(7)
    record = new_record(config, created_at=1)
    clock = 1
    for _ in range(300):
        op = rng.choice(["create", "delete", "switch", "delete_active"])
        ids = list(record.conversations)
        if op == "create":
            clock += rng.randint(0, 3)
            conversations.create(record, created_at=clock)
        elif op == "delete" and ids:
            conversations.delete(record, rng.choice(ids))
        elif op == "switch" and ids:
            conversations.switch(record, rng.choice(ids + ["conv_missing"]))
        elif op == "delete_active":
            conversations.delete(record, record.active_conversation_id)

        active = record.active_conversation_id
        assert active is None or active in record.conversations
