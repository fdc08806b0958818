from bedrock_api_helper.cache import TtlCache


class _FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_cache_clear():
    cache = TtlCache()
    cache.set("test", b"data", 60)
    assert cache.get("test") == b"data"
    cache.clear()
    assert cache.get("test") is None


def test_cache_delete():
    cache = TtlCache()
    cache.set("test1", b"data1", 60)
    cache.set("test2", b"data2", 60)
    cache.delete("test1")
    assert cache.get("test1") is None
    assert cache.get("test2") == b"data2"


def test_cache_delete_missing_key_is_harmless():
    cache = TtlCache()
    cache.set("kept", b"value", 60)
    cache.delete("absent")
    assert cache.get("kept") == b"value"


def test_cache_entry_expires():
    clock = _FakeClock()
    cache = TtlCache(clock=clock)
    cache.set("key", b"value", 10)
    clock.now += 10
    assert cache.get("key") == b"value"
    clock.now += 0.5
    assert cache.get("key") is None


def test_cache_set_overwrites_and_refreshes():
    clock = _FakeClock()
    cache = TtlCache(clock=clock)
    cache.set("key", b"old", 5)
    clock.now += 4
    cache.set("key", b"new", 5)
    clock.now += 4
    assert cache.get("key") == b"new"