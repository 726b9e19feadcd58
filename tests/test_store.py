from llm_search_audit.store import AuditStores, PageSnapshot, RateLimiter, TTLStore

from helpers import BASE_URL, make_page


def test_ttl_store_expires_entries(clock):
    store = TTLStore(ttl=60, clock=clock)
    store.set("a", {"robots.txt": "x"})

    clock.advance(59)
    assert store.get("a") == {"robots.txt": "x"}

    clock.advance(1)
    assert store.get("a") is None
    assert len(store) == 0


def test_ttl_store_put_returns_fresh_ids(clock):
    store = TTLStore(ttl=60, clock=clock)
    first = store.put("one")
    second = store.put("two")

    assert first != second
    assert store.get(first) == "one"
    store.delete(first)
    assert store.get(first) is None
    assert store.get(second) == "two"


def test_ttl_store_sweeps_other_expired_entries_on_access(clock):
    store = TTLStore(ttl=10, clock=clock)
    store.set("old", 1)
    clock.advance(11)
    store.set("new", 2)
    assert len(store) == 1


def test_rate_limiter_fixed_window(clock):
    limiter = RateLimiter(max_requests=5, window=3600, clock=clock)

    decisions = [limiter.check("1.2.3.4") for _ in range(5)]
    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0]

    clock.advance(600)
    denied = limiter.check("1.2.3.4")
    assert not denied.allowed
    assert denied.retry_after == 3000

    # Other callers have their own window
    assert limiter.check("5.6.7.8").allowed

    clock.advance(3000)
    assert limiter.check("1.2.3.4").allowed


def test_audit_stores_in_memory_share_clock(clock):
    stores = AuditStores.in_memory(ttl=100, clock=clock)
    snapshot = PageSnapshot(pages=[make_page()], schema_files={}, base_url=BASE_URL, site_name="Example")

    files_id = stores.artifacts.put({"robots.txt": "x"})
    pages_id = stores.pages.put(snapshot)
    assert stores.pages.get(pages_id) is snapshot

    clock.advance(100)
    assert stores.artifacts.get(files_id) is None
    assert stores.pages.get(pages_id) is None
