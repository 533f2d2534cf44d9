"""Tests for the mirror pool and URL resolution."""

from npmjs.registry.mirrors import MirrorPool, dedupe, resolve


class TestDedupe:
    """Tests for order-preserving deduplication."""

    def test_drops_duplicates_and_falsy_entries(self):
        """Each distinct truthy URL appears once, in first-seen order."""
        urls = ["https://a/", None, "https://b/", "", "https://a/", "https://c/", "https://b/"]
        assert dedupe(urls) == ["https://a/", "https://b/", "https://c/"]

    def test_exact_string_equality_only(self):
        """URLs differing by a trailing slash are distinct entries."""
        assert dedupe(["https://a", "https://a/"]) == ["https://a", "https://a/"]


class TestMirrorPool:
    """Tests for pulling, exhaustion and reset."""

    def test_pull_sequence_then_exhaustion(self):
        """Pull hands out every URL once and then signals exhaustion with None."""
        pool = MirrorPool.from_registry("https://primary/", ["https://m1/", "https://primary/", None])

        assert pool.pull() == "https://primary/"
        assert pool.pull() == "https://m1/"
        assert pool.exhausted is True
        assert pool.pull() is None
        assert pool.pull() is None

    def test_reset_restores_full_list(self):
        """Reset refills the pool in the original order."""
        pool = MirrorPool(["https://a/", "https://b/"])
        pool.pull()
        pool.pull()

        pool.reset()

        assert [pool.pull(), pool.pull(), pool.pull()] == ["https://a/", "https://b/", None]

    def test_independent_pools_do_not_share_state(self):
        """Exhausting one pool leaves another pool built from the same list intact."""
        urls = ["https://a/", "https://b/"]
        first, second = MirrorPool(urls), MirrorPool(urls)
        while first.pull() is not None:
            pass

        assert second.pull() == "https://a/"
        assert len(second) == 2
        assert list(second) == urls

    def test_empty_pool_is_exhausted(self):
        """A pool built only from falsy entries is immediately exhausted."""
        pool = MirrorPool([None, ""])
        assert len(pool) == 0
        assert pool.pull() is None


class TestResolve:
    """Tests for joining a base URL with a request path."""

    def test_relative_path(self):
        assert resolve("https://registry.npmjs.org/", "express") == "https://registry.npmjs.org/express"

    def test_base_without_trailing_slash_is_a_directory(self):
        assert resolve("https://host.test/npm", "express") == "https://host.test/npm/express"

    def test_absolute_path_replaces_base_path(self):
        assert (
            resolve("https://host.test/npm/", "/-/user/org.couchdb.user:bob")
            == "https://host.test/-/user/org.couchdb.user:bob"
        )
