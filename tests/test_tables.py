"""
Tests for lookup table generation, the perfect hash and the table asset.
"""

import logging
import threading

import jax.numpy as jnp
import numpy as np
import pytest

import pokerrank.tables as tables
from pokerrank.evaluator import perfect_hash
from pokerrank.tables import builder
from pokerrank.tables.constants import (
    PRIMES, STRAIGHT_PATTERNS, MAX_FULL_HOUSE, MAX_FLUSH, MAX_STRAIGHT,
    MAX_PAIR, MAX_HIGH_CARD, HASH_VALUES_SIZE, NUM_PAIRED_PRODUCTS,
)


@pytest.fixture(scope="module")
def arrays():
    return builder.build_all()


@pytest.fixture(scope="module")
def products():
    return builder.paired_products()


class TestBuilder:
    """Test the derived table contents."""

    def test_shapes(self, arrays):
        assert arrays["primes"].shape == (13,)
        assert arrays["flushes"].shape == (8192,)
        assert arrays["unique"].shape == (8192,)
        assert arrays["hash_adjust"].shape == (512,)
        assert arrays["hash_values"].shape == (8192,)

    def test_primes(self, arrays):
        assert list(arrays["primes"]) == list(PRIMES)

    def test_flush_table(self, arrays):
        """Test flush ranks cover straight flushes and flushes exactly once."""
        flushes = arrays["flushes"]
        values = sorted(int(v) for v in flushes[flushes != 0])
        assert values == list(range(1, 11)) + list(range(MAX_FULL_HOUSE + 1, MAX_FLUSH + 1))

    def test_unique_table(self, arrays):
        """Test unique ranks cover straights and high cards exactly once."""
        unique = arrays["unique"]
        values = sorted(int(v) for v in unique[unique != 0])
        assert values == list(range(MAX_FLUSH + 1, MAX_STRAIGHT + 1)) + list(range(MAX_PAIR + 1, MAX_HIGH_CARD + 1))

    def test_only_five_rank_patterns(self, arrays):
        """Test only patterns with five ranks set have entries."""
        for pattern in np.flatnonzero(arrays["unique"]):
            assert bin(int(pattern)).count("1") == 5
        assert np.array_equal(arrays["flushes"] != 0, arrays["unique"] != 0)

    def test_straight_patterns(self, arrays):
        for i, pattern in enumerate(STRAIGHT_PATTERNS):
            assert arrays["flushes"][pattern] == i + 1
            assert arrays["unique"][pattern] == MAX_FLUSH + 1 + i

    def test_paired_products(self, products):
        assert len(products) == NUM_PAIRED_PRODUCTS
        assert sorted(products.values()) == (
            list(range(11, MAX_FULL_HOUSE + 1)) + list(range(MAX_STRAIGHT + 1, MAX_PAIR + 1))
        )
        # Four aces with a king, the worst pair
        assert products[41 ** 4 * 37] == 11
        assert products[2 ** 2 * 3 * 5 * 7] == MAX_PAIR

    def test_flush_boundary_checked(self, monkeypatch):
        monkeypatch.setattr(builder, "MAX_FLUSH", MAX_FLUSH - 1)
        with pytest.raises(RuntimeError, match="expected 1598"):
            builder.build_flushes()

    def test_paired_boundary_checked(self, monkeypatch):
        monkeypatch.setattr(builder, "MAX_PAIR", MAX_PAIR + 1)
        with pytest.raises(RuntimeError, match="expected 6186"):
            builder.paired_products()


class TestPerfectHash:
    """Test the perfect hash over paired-hand prime products."""

    def test_adjust_range(self, arrays):
        assert int(arrays["hash_adjust"].max()) < HASH_VALUES_SIZE

    def test_injective(self, arrays, products):
        """Test every paired product lands on its own slot holding its rank."""
        slots = {}
        for product, rank in products.items():
            slot = builder.perfect_hash_int(product, arrays["hash_adjust"])
            assert 0 <= slot < HASH_VALUES_SIZE
            assert slot not in slots
            slots[slot] = product
            assert arrays["hash_values"][slot] == rank
        assert np.count_nonzero(arrays["hash_values"]) == NUM_PAIRED_PRODUCTS

    def test_jax_matches_int(self, arrays, products):
        """Test the uint32 JAX hash is bit-exact with the Python int hash."""
        keys = np.array(sorted(products), dtype=np.uint32)
        adjust = jnp.asarray(arrays["hash_adjust"], dtype=jnp.uint32)
        slots = np.asarray(perfect_hash(jnp.asarray(keys), adjust))
        expected = [builder.perfect_hash_int(int(k), arrays["hash_adjust"]) for k in keys]
        assert slots.tolist() == expected

    def test_wraparound(self, arrays):
        """Test keys that overflow 32 bits after the offset are handled like unsigned ints."""
        adjust = jnp.asarray(arrays["hash_adjust"], dtype=jnp.uint32)
        for key in (0, 1, 0x16E555CB, 0xFFFFFFFF):
            got = int(perfect_hash(jnp.uint32(key), adjust))
            assert got == builder.perfect_hash_int(key, arrays["hash_adjust"])

    def test_deterministic(self, arrays):
        again = builder.build_all()
        for name in tables.TABLE_NAMES:
            assert np.array_equal(arrays[name], again[name])


class TestTableAsset:
    """Test saving, reading and loading the versioned table asset."""

    def test_save_and_read(self, tmp_path, arrays):
        path = str(tmp_path / "tables.npz")
        digest = tables.save_tables(path, arrays)
        assert digest == tables.tables_digest(arrays)

        loaded = tables.read_tables(path)
        for name in tables.TABLE_NAMES:
            assert np.array_equal(loaded[name], arrays[name])

    def test_corrupt_asset(self, tmp_path, arrays):
        path = str(tmp_path / "tables.npz")
        bad = dict(arrays)
        bad["hash_values"] = arrays["hash_values"].copy()
        bad["hash_values"][0] ^= 1
        np.savez(
            path,
            format_version=np.int32(tables.FORMAT_VERSION),
            digest=np.array(tables.tables_digest(arrays)),
            **bad,
        )
        with pytest.raises(ValueError, match="corrupt"):
            tables.read_tables(path)

    def test_wrong_version(self, tmp_path, arrays):
        path = str(tmp_path / "tables.npz")
        np.savez(path, format_version=np.int32(99), digest=np.array(""), **arrays)
        with pytest.raises(ValueError, match="version"):
            tables.read_tables(path)

    def test_initial_arrays_from_asset(self, tmp_path, arrays):
        path = str(tmp_path / "tables.npz")
        tables.save_tables(path, arrays)
        loaded = tables._initial_arrays(path)
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)

    def test_initial_arrays_from_env(self, tmp_path, arrays, monkeypatch):
        path = str(tmp_path / "tables.npz")
        tables.save_tables(path, arrays)
        monkeypatch.setenv(tables.TABLES_ENV_VAR, path)
        loaded = tables._initial_arrays(None)
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)

    def test_initial_arrays_bad_asset_rebuilds(self, tmp_path, arrays, caplog):
        path = tmp_path / "tables.npz"
        path.write_bytes(b"not a table asset")
        with caplog.at_level(logging.WARNING, logger="pokerrank.tables"):
            loaded = tables._initial_arrays(str(path))
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)
        assert "Ignoring lookup table asset" in caplog.text

    def test_truncated_asset(self, tmp_path, arrays, caplog):
        """Test a cut-off archive is reported as unreadable and then rebuilt."""
        path = tmp_path / "tables.npz"
        tables.save_tables(str(path), arrays)
        data = path.read_bytes()
        path.write_bytes(data[: len(data) // 2])

        with pytest.raises(ValueError, match="unreadable"):
            tables.read_tables(str(path))
        with caplog.at_level(logging.WARNING, logger="pokerrank.tables"):
            loaded = tables._initial_arrays(str(path))
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)
        assert "Ignoring lookup table asset" in caplog.text

    def test_asset_without_digest(self, tmp_path, arrays, caplog):
        path = str(tmp_path / "tables.npz")
        np.savez(path, format_version=np.int32(tables.FORMAT_VERSION), **arrays)

        with pytest.raises(ValueError, match="missing digest"):
            tables.read_tables(path)
        with caplog.at_level(logging.WARNING, logger="pokerrank.tables"):
            loaded = tables._initial_arrays(path)
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)
        assert "Ignoring lookup table asset" in caplog.text

    def test_initial_arrays_missing_asset_rebuilds(self, tmp_path, arrays, caplog):
        with caplog.at_level(logging.WARNING, logger="pokerrank.tables"):
            loaded = tables._initial_arrays(str(tmp_path / "missing.npz"))
        assert tables.tables_digest(loaded) == tables.tables_digest(arrays)
        assert "not found" in caplog.text


class TestLoadTables:
    """Test process-wide initialisation."""

    def test_same_object(self):
        assert tables.load_tables() is tables.load_tables()

    def test_digest(self, arrays):
        tables.load_tables()
        assert tables.loaded_digest() == tables.tables_digest(arrays)

    def test_concurrent_first_use(self, monkeypatch):
        """Test concurrent first callers build once and share one object."""
        calls = []
        real_build = builder.build_all

        def counting_build():
            calls.append(1)
            return real_build()

        monkeypatch.setattr(tables, "_tables", None)
        monkeypatch.setattr(tables, "_digest", None)
        monkeypatch.setattr(builder, "build_all", counting_build)
        monkeypatch.delenv(tables.TABLES_ENV_VAR, raising=False)

        results = []
        threads = [threading.Thread(target=lambda: results.append(tables.load_tables())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_device_dtypes(self):
        t = tables.load_tables()
        assert t.flushes.dtype == jnp.int32
        assert t.hash_adjust.dtype == jnp.uint32
        assert t.hash_values.shape == (8192,)
