from datetime import datetime
from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.core.validation import normalize_to_utc_midnight, parse_amount, resolve_timezone
from app.domain.transactions.schemas import TransactionCreate
from app.domain.transactions.services import normalize_transaction


@pytest.mark.parametrize(
    "raw, expected",
    [
        (12, Decimal("12")),
        ("12.50", Decimal("12.50")),
        ("12.345", Decimal("12.345")),
        (0.1, Decimal("0.1")),
        (Decimal("99.99"), Decimal("99.99")),
        ("999999999.999999", Decimal("999999999.999999")),
    ],
)
def test_parse_amount_keeps_exact_values(raw, expected) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", [0, -5, "abc", None, True, "NaN", "Infinity"])
def test_parse_amount_rejects_invalid_values(raw) -> None:
    with pytest.raises(ValidationError):
        parse_amount(raw)


@pytest.mark.parametrize("raw", ["0.0000001", "1000000000", "12345678901234567.89", "1E+10"])
def test_parse_amount_rejects_values_the_column_cannot_hold(raw) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_amount(raw)

    assert "amount" in excinfo.value.details


def test_custom_date_becomes_utc_midnight() -> None:
    assert normalize_to_utc_midnight("2024-03-15T23:59:00Z") == datetime(2024, 3, 15)
    # Offsets are converted to UTC before the day is taken.
    assert normalize_to_utc_midnight("2024-03-15T23:30:00-05:00") == datetime(2024, 3, 16)
    assert normalize_to_utc_midnight("2024-03-15") == datetime(2024, 3, 15)
    assert normalize_to_utc_midnight(1710460800000) == datetime(2024, 3, 15)


def test_unparseable_date_is_rejected() -> None:
    with pytest.raises(ValidationError):
        normalize_to_utc_midnight("yesterday-ish")


def test_normalize_defaults() -> None:
    normalized = normalize_transaction(TransactionCreate(type="income", amount="100", title="  Invoice "))

    assert normalized.status == "active"
    assert normalized.date is None
    assert normalized.is_custom_date is False
    assert normalized.title == "Invoice"
    assert normalized.amount == Decimal("100")


def test_normalize_custom_date() -> None:
    normalized = normalize_transaction(
        TransactionCreate(type="expense", amount=5, date="2024-03-15T23:59:00Z"), require_date=True
    )

    assert normalized.date == datetime(2024, 3, 15)
    assert normalized.is_custom_date is True


def test_custom_transactions_require_a_date() -> None:
    with pytest.raises(ValidationError) as exc_info:
        normalize_transaction(TransactionCreate(type="expense", amount=5), require_date=True)
    assert exc_info.value.details == {"date": "required"}


def test_type_is_checked_before_amount() -> None:
    with pytest.raises(ValidationError) as exc_info:
        normalize_transaction(TransactionCreate(type="gift", amount=-1))
    assert exc_info.value.code == "INVALID_TYPE"


def test_status_must_be_known() -> None:
    with pytest.raises(ValidationError):
        normalize_transaction(TransactionCreate(type="expense", amount=5, status="pending"))


def test_note_and_description_later_key_wins() -> None:
    assert TransactionCreate.model_validate({"description": "first", "note": "second"}).description == "second"
    assert TransactionCreate.model_validate({"note": "first", "description": "second"}).description == "second"
    assert TransactionCreate.model_validate({"note": "only"}).description == "only"


def test_camel_case_fields_are_accepted() -> None:
    payload = TransactionCreate.model_validate({"type": "income", "amount": 1, "categoryId": "abc"})
    assert payload.category_id == "abc"


def test_resolve_timezone() -> None:
    assert resolve_timezone(" America/New_York ").key == "America/New_York"
    with pytest.raises(ValidationError):
        resolve_timezone("Mars/Olympus_Mons")
    with pytest.raises(ValidationError):
        resolve_timezone(None)
