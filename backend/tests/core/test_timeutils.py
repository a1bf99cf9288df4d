from datetime import datetime, timedelta, timezone

from app.core.timeutils import as_naive_utc


class TestAsNaiveUtc:
    def test_offset_is_converted_to_utc(self) -> None:
        moscow = timezone(timedelta(hours=3))

        assert as_naive_utc(datetime(2024, 5, 1, 15, 0, tzinfo=moscow)) == datetime(2024, 5, 1, 12, 0)

    def test_naive_value_is_kept(self) -> None:
        value = datetime(2024, 5, 1, 12, 0)

        assert as_naive_utc(value) is value

    def test_none_is_kept(self) -> None:
        assert as_naive_utc(None) is None
