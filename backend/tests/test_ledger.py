import pytest

from backend.app.core.config import UNLIMITED
from backend.app.services import quota
from backend.app.services.redemption import (
    ALREADY_UNLIMITED, ALREADY_USED, EMPTY_CODE, INVALID_CODE, redeem,
)
from backend.app.services.repair import new_record


def test_can_spend_rules(config):
    record = new_record(config)
    assert quota.can_spend(record)

    record.quota = 0
    assert not quota.can_spend(record)

    record.quota = UNLIMITED
    assert quota.can_spend(record)

    record.quota = 0
    record.credential = "my-own-key"
    assert quota.can_spend(record)


def test_debit_decrements_by_one(config):
    record = new_record(config)
    assert quota.debit(record) is True
    assert record.quota == 2


def test_debit_is_noop_with_credential_or_unlimited(config):
    record = new_record(config)
    record.credential = "my-own-key"
    assert quota.debit(record) is False
    assert record.quota == 3

    record.credential = None
    record.quota = UNLIMITED
    assert quota.debit(record) is False
    assert record.quota == UNLIMITED


def test_debit_never_goes_negative(config):
    record = new_record(config)
    record.quota = 0
    with pytest.raises(ValueError):
        quota.debit(record)
    assert record.quota == 0


def test_redeem_adds_quota_and_records_code(config):
    record = new_record(config)
    result = redeem(record, "  blue-gem-a8c5 ", config)
    assert result.ok
    assert record.quota == 8
    assert record.redeemed_codes == ["BLUE-GEM-A8C5"]


@pytest.mark.parametrize("code,message", [("", EMPTY_CODE), ("   ", EMPTY_CODE), (None, EMPTY_CODE),
                                          ("NOT-A-CODE", INVALID_CODE)])
def test_redeem_rejections_leave_record_untouched(config, code, message):
    record = new_record(config)
    before = record.model_copy(deep=True)
    result = redeem(record, code, config)
    assert not result.ok
    assert result.message == message
    assert record == before


def test_redeem_exactly_once(config):
    record = new_record(config)
    assert redeem(record, "BLUE-GEM-A8C5", config).ok

    second = redeem(record, "blue-gem-a8c5", config)

    assert not second.ok
    assert second.message == ALREADY_USED
    assert record.quota == 8
    assert record.redeemed_codes == ["BLUE-GEM-A8C5"]


def test_unlimited_then_numeric_code_is_rejected(config):
    record = new_record(config)
    assert redeem(record, "GEMINI-FOR-ALL", config).ok
    assert record.quota == UNLIMITED

    result = redeem(record, "CYAN-ROCK-B6D2", config)
    assert not result.ok
    assert result.message == ALREADY_UNLIMITED
    assert record.quota == UNLIMITED
    assert record.redeemed_codes == ["GEMINI-FOR-ALL"]


def test_code_table_is_injected(config):
    custom = config.model_copy(update={"redeem_codes": {"TEST-ONLY": 2}})
    record = new_record(custom)
    assert not redeem(record, "BLUE-GEM-A8C5", custom).ok
    assert redeem(record, "test-only", custom).ok
    assert record.quota == 5


def test_exhausted_then_redeemed_scenario(config):
    record = new_record(config)
    for _ in range(3):
        assert quota.can_spend(record)
        quota.debit(record)
    assert record.quota == 0
    assert not quota.can_spend(record)

    assert redeem(record, "BLUE-GEM-A8C5", config).ok
    assert record.quota == 5


def test_unlimited_code_on_unlimited_record_is_rejected(config):
    extra = config.model_copy(update={"redeem_codes": {**config.redeem_codes, "GOLD-FOREVER": UNLIMITED}})
    record = new_record(extra)
    assert redeem(record, "GEMINI-FOR-ALL", extra).ok

    result = redeem(record, "gold-forever", extra)

    assert not result.ok
    assert result.message == ALREADY_UNLIMITED
    assert record.quota == UNLIMITED
    assert record.redeemed_codes == ["GEMINI-FOR-ALL"]
