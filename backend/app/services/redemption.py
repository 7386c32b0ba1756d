from typing import Optional

from loguru import logger

from backend.app.core.config import RelayConfig, UNLIMITED
from backend.app.core.errors import ErrorKind
from backend.app.models.results import OperationResult
from backend.app.models.session import SessionRecord
from backend.app.services.quota import is_unlimited

EMPTY_CODE = "Redemption code cannot be empty."
ALREADY_USED = "This code has already been used on this account."
INVALID_CODE = "Invalid redemption code."
ALREADY_UNLIMITED = "You already have unlimited access."


def normalize_code(raw_code: Optional[str]) -> str:
    return (raw_code or "").strip().upper()


def redeem(record: SessionRecord, raw_code: Optional[str], config: RelayConfig) -> OperationResult:
    """
    Apply an entitlement code at most once per record.
    Rejections leave the record untouched.
    """
    code = normalize_code(raw_code)
    if not code:
        return OperationResult.failure(ErrorKind.VALIDATION, EMPTY_CODE)
    if code in record.redeemed_codes:
        return OperationResult.failure(ErrorKind.VALIDATION, ALREADY_USED)

    value = config.redeem_codes.get(code)
    if value is None or (value != UNLIMITED and value <= 0):
        logger.info(f"Rejected unknown redemption code {code!r}")
        return OperationResult.failure(ErrorKind.VALIDATION, INVALID_CODE)

    if is_unlimited(record):
        return OperationResult.failure(ErrorKind.VALIDATION, ALREADY_UNLIMITED)

    if value == UNLIMITED:
        record.quota = UNLIMITED
        message = "Redeemed! You now have unlimited access."
    else:
        record.quota += value
        message = f"Redeemed! {value} uses added."

    record.redeemed_codes.append(code)
    logger.info(f"Redeemed code {code!r} (quota now {record.quota})")
    return OperationResult.success(record=record, message=message)
