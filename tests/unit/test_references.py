import re
from datetime import date, datetime, timezone

import pytest

from app.domain.value_objects.booking_reference import BookingReference, ManualConfirmationNumber
from app.domain.value_objects.travel_dates import TravelDates

NOW = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)  # 1700000000 s


def test_booking_reference_format():
    reference = str(BookingReference.generate(NOW))

    assert re.fullmatch(r"BKG-1700000000000-[0-9A-Z]{5}", reference)


@pytest.mark.parametrize(
    "item_type, prefix",
    [("Hotel", "HOTEL-MAN"), ("Flight", "FLIGHT-MAN"), ("Tour", "MANUAL"), ("Insurance", "MANUAL")],
)
def test_manual_confirmation_number_prefix(item_type, prefix):
    number = str(ManualConfirmationNumber.generate(item_type, NOW))

    assert re.fullmatch(rf"{prefix}-1700000000000-[0-9A-Z]{{6}}", number)


def test_travel_dates_default_to_today_when_missing():
    dates = TravelDates.from_optional(None, None, today=date(2026, 1, 5))

    assert dates.start == date(2026, 1, 5)
    assert dates.end == date(2026, 1, 5)
