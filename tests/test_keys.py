from lapse import Cache, cache_key, owner_pattern
from lapse.keys import fingerprint


def test_cache_key() -> None:
    assert cache_key("invoices", "42") == "invoices:42"
    assert cache_key("invoice", "42", 7) == "invoice:42:7"
    assert cache_key("report", 42, "monthly", "2024") == "report:42:monthly:2024"


def test_fingerprint_order_independent() -> None:
    a = fingerprint({"page": 1, "status": "paid"})
    b = fingerprint({"status": "paid", "page": 1})
    assert a == b
    assert len(a) == 16
    assert a != fingerprint({"page": 2, "status": "paid"})


def test_cache_key_params() -> None:
    key = cache_key("invoices", "42", "list", params={"page": 1})
    assert key.startswith("invoices:42:list:")
    assert key == cache_key("invoices", "42", "list", params={"page": 1})
    assert cache_key("invoices", "42", params={}) == "invoices:42"


def test_fingerprint_unserializable() -> None:
    class Filter:
        def __repr__(self) -> str:
            return "Filter()"

    assert fingerprint({"f": Filter()}) == fingerprint({"f": Filter()})


def test_owner_pattern(cache: Cache) -> None:
    keys = [
        cache_key("invoices", "4"),
        cache_key("invoices", "4", "list", params={"page": 1}),
        cache_key("invoices", "4", "list", params={"page": 2}),
        cache_key("invoices", "42"),
        cache_key("invoices", "42", "list"),
        cache_key("customers", "4"),
    ]
    for key in keys:
        cache.set(key, key)
    assert cache.invalidate_pattern(owner_pattern("invoices", "4")) == 3
    assert sorted(cache.keys()) == ["customers:4", "invoices:42", "invoices:42:list"]
