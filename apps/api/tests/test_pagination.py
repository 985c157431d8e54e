from __future__ import annotations

import pytest

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.pagination import PageParams


def test_defaults_come_from_settings():
    params = PageParams.from_query(None, None)

    assert params.page == 1
    assert params.limit == settings.feed_default_limit
    assert params.offset == 0


def test_offset_skips_earlier_pages():
    assert PageParams(page=3, limit=10).offset == 20


@pytest.mark.parametrize(
    ("total", "page_count"),
    [(0, 0), (1, 1), (10, 1), (11, 2), (25, 3)],
)
def test_page_count_rounds_up(total, page_count):
    meta = PageParams(page=1, limit=10).meta(total)

    assert meta.total == total
    assert meta.page_count == page_count


@pytest.mark.parametrize(
    ("page", "limit"),
    [(0, 10), (-1, 10), (1, 0), (1, settings.feed_max_limit + 1)],
)
def test_out_of_range_values_are_rejected(page, limit):
    with pytest.raises(ValidationError):
        PageParams.from_query(page, limit)


def test_page_beyond_the_end_is_allowed():
    meta = PageParams(page=9, limit=10).meta(25)

    assert meta.page == 9
    assert meta.page_count == 3
