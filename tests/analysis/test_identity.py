"""
Tests for the navvra.analysis.identity module.
"""

from unittest.mock import Mock

from navvra.analysis.identity import IdentityMap


class TestIdentityMap:
    """Tests for generation-scoped identifiers."""

    def test_register_and_resolve(self):
        identity_map = IdentityMap()
        identity_map.begin_generation()
        handle = Mock()

        element_id = identity_map.register(handle)

        assert element_id == "nv-1-1"
        assert identity_map.resolve(element_id) is handle
        assert element_id in identity_map
        assert len(identity_map) == 1

    def test_ids_unique_within_generation(self):
        identity_map = IdentityMap()
        identity_map.begin_generation()

        ids = [identity_map.register(Mock()) for _ in range(5)]

        assert len(set(ids)) == 5

    def test_new_generation_invalidates_old_ids(self):
        identity_map = IdentityMap()
        identity_map.begin_generation()
        old_id = identity_map.register(Mock())

        identity_map.begin_generation()
        new_id = identity_map.register(Mock())

        assert identity_map.resolve(old_id) is None
        assert new_id != old_id
        assert identity_map.resolve(new_id) is not None

    def test_ids_never_reused_across_generations(self):
        identity_map = IdentityMap()
        seen = set()
        for _ in range(3):
            identity_map.begin_generation()
            for _ in range(3):
                seen.add(identity_map.register(Mock()))

        assert len(seen) == 9

    def test_resolve_garbage_returns_none(self):
        identity_map = IdentityMap()
        identity_map.begin_generation()
        identity_map.register(Mock())

        assert identity_map.resolve("nv-99-1") is None
        assert identity_map.resolve("") is None
        assert identity_map.resolve(None) is None
        assert identity_map.resolve(42) is None
        assert identity_map.resolve({"id": "nv-1-1"}) is None

    def test_is_current(self):
        identity_map = IdentityMap()
        first = identity_map.begin_generation()
        second = identity_map.begin_generation()

        assert not identity_map.is_current(first)
        assert identity_map.is_current(second)

    def test_clear_keeps_generation(self):
        identity_map = IdentityMap()
        generation = identity_map.begin_generation()
        element_id = identity_map.register(Mock())

        identity_map.clear()

        assert identity_map.resolve(element_id) is None
        assert identity_map.generation == generation

    def test_custom_prefix(self):
        identity_map = IdentityMap(prefix="tab7")
        identity_map.begin_generation()

        assert identity_map.register(Mock()).startswith("tab7-1-")
