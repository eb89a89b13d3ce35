"""Tests for list response normalization."""
import pytest
from distro_portal.exceptions import ResponseShapeError
from distro_portal.paging.normalize import extract_collection, normalize_page


def test_data_wrapper_with_recoveries():
    """Test nested data wrapper with pagination metadata."""
    recoveries = [{"_id": f"r{i}"} for i in range(10)]
    payload = {"data": {"recoveries": recoveries, "pagination": {"page": 2, "pages": 5, "total": 47}}}

    page = normalize_page(payload, page_size=10)

    assert page.items == recoveries
    assert page.current == 2
    assert page.pages == 5
    assert page.total == 47
    assert page.source == "recoveries"


def test_bare_sequence_uses_length_as_total():
    """Test a bare list with no pagination metadata."""
    rows = [{"name": "Daal Moth"}, {"name": "Chana Chor"}, {"name": "Nimco Mix"}]

    page = normalize_page(rows, page_size=10)

    assert page.items == rows
    assert page.total == 3
    assert page.pages == 1
    assert page.current is None


def test_top_level_alias():
    """Test collection under a top-level alias (no data wrapper)."""
    payload = {
        "shopkeeperOrders": [{"_id": "o1"}],
        "pagination": {"current": 3, "totalPages": 4, "total": 31},
    }

    page = normalize_page(payload, page_size=10)

    assert page.items == [{"_id": "o1"}]
    assert page.current == 3
    assert page.pages == 4
    assert page.total == 31


def test_alias_priority_prefers_items():
    """Test that items wins over domain-specific aliases."""
    payload = {"products": [{"p": 1}], "items": [{"i": 1}]}
    items, _, source = extract_collection(payload)
    assert items == [{"i": 1}]
    assert source == "items"


def test_pages_derived_from_total():
    """Test page count derived from total when the backend omits it."""
    payload = {"users": [{"_id": "u1"}] * 20, "pagination": {"total": 45}}
    page = normalize_page(payload, page_size=20)
    assert page.pages == 3
    assert page.total == 45


def test_data_wrapper_holding_list():
    """Test data wrapper that is itself the collection."""
    payload = {"data": [{"_id": "c1"}, {"_id": "c2"}]}
    page = normalize_page(payload, page_size=10)
    assert len(page.items) == 2
    assert page.total == 2


def test_unknown_shape_defaults_to_empty():
    """Test unrecognized payload falls back to an empty collection."""
    page = normalize_page({"message": "ok", "count": 3}, page_size=10)
    assert page.items == []
    assert page.total == 0
    assert page.pages == 1
    assert page.recognized is False


def test_unknown_shape_strict_raises():
    """Test strict mode raises instead of defaulting."""
    with pytest.raises(ResponseShapeError) as excinfo:
        normalize_page({"message": "ok"}, page_size=10, strict=True)
    assert excinfo.value.keys == ["message"]


def test_invalid_pagination_numbers_ignored():
    """Test junk or zero metadata is treated as missing."""
    payload = {"orders": [{"_id": "o1"}, {"_id": "o2"}], "pagination": {"page": "abc", "pages": 0, "total": None}}
    page = normalize_page(payload, page_size=10)
    assert page.current is None
    assert page.pages == 1
    assert page.total == 2


def test_falsy_data_falls_back_to_top_level():
    """Test a null-ish data field does not hide top-level aliases."""
    for data in (0, "", False, None):
        page = normalize_page({"data": data, "orders": [{"_id": "o1"}], "pagination": {"total": 1}}, page_size=10)
        assert page.items == [{"_id": "o1"}]
        assert page.source == "orders"


def test_empty_data_list_is_the_collection():
    """Test an empty list under data is an empty page, not an unknown shape."""
    page = normalize_page({"data": [], "orders": [{"_id": "o1"}]}, page_size=10)
    assert page.items == []
    assert page.source == "data"
