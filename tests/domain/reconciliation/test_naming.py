from __future__ import annotations

import pytest

from returnsync.domain.model import extract_brand
from returnsync.domain.reconciliation import (
    normalize_product_name,
    option_as_color,
    search_keyword,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("[오늘출발] hm 니트 (재입고)", "hm 니트"),
        ("hm   라쿤   울", "hm 라쿤 울"),
        ("hm 라쿤 폭스 울 터틀넥니트] 심플", "hm 라쿤 폭스 울 터틀넥니트] 심플"),
        ("[단독]", ""),
        (None, ""),
    ],
)
def test_normalize_product_name(raw: str | None, expected: str) -> None:
    assert normalize_product_name(raw) == expected


def test_search_keyword_strips_only_a_leading_brand() -> None:
    assert search_keyword("hm 라쿤 울 니트") == "라쿤 울 니트"
    assert search_keyword("라쿤 울 hm 니트") == "라쿤 울 hm 니트"
    assert search_keyword("hm") == ""


def test_option_as_color_defaults_to_placeholder() -> None:
    assert option_as_color(" 베이지 ") == "베이지"
    assert option_as_color("") == "기본"
    assert option_as_color(None) == "기본"


def test_extract_brand_requires_a_space_after_the_code() -> None:
    assert extract_brand("PS 니트 가디건") == "ps"
    assert extract_brand("hm니트") == ""
    assert extract_brand("[타이즈] 기모") == ""
    assert extract_brand(None) == ""
