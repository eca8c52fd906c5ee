"""Pytest configuration and shared fixtures for qkd-ber-lab tests."""
import pytest
import numpy as np
from qkd_ber_lab.config import AnalysisConfig, DEFAULT_CONFIG


PERIOD_PS = 32_000
WINDOW_PS = 3_000


# ============================================================================
# NUMPY FIXTURES
# ============================================================================

@pytest.fixture
def rng_seed():
    """Fixed random seed for reproducible tests."""
    return 42


@pytest.fixture
def np_rng(rng_seed):
    """NumPy random generator with fixed seed."""
    return np.random.default_rng(rng_seed)


# ============================================================================
# CONFIG FIXTURES
# ============================================================================

@pytest.fixture
def default_config():
    """Reference configuration (32 ns period, 3 ns window, 100 ps guard)."""
    return DEFAULT_CONFIG


@pytest.fixture
def complementary_config():
    """Reference configuration with the complementary metric convention."""
    return AnalysisConfig(convention="complementary")


# ============================================================================
# HISTOGRAM FIXTURES
# ============================================================================

@pytest.fixture
def empty_histogram():
    """All-zero histogram over one period."""
    return np.zeros(PERIOD_PS, dtype=np.int64)


@pytest.fixture
def uniform_histogram():
    """Every bin holds one count."""
    return np.ones(PERIOD_PS, dtype=np.int64)


@pytest.fixture
def peaked_histogram():
    """
    Flat background of 1 with a 3 ns signal block at [10000, 13000).

    C1 and C2 sub-bins hold 20 counts per ps, the middle D1 sub-bin 3.
    """
    h = np.ones(PERIOD_PS, dtype=np.int64)
    h[10_000:11_000] = 20
    h[11_000:12_000] = 3
    h[12_000:13_000] = 20
    return h


@pytest.fixture
def synthetic_timestamps(np_rng):
    """
    Timestamps over many periods: signal in C1/C2 sub-bins at [4000, 5000)
    and [6000, 7000), weaker error sub-bin at [5000, 6000), uniform noise.
    """
    n_periods = 5_000
    periods = np_rng.integers(0, n_periods, size=6_000) * PERIOD_PS
    offsets = np.concatenate([
        np_rng.uniform(4_000, 5_000, size=2_500),
        np_rng.uniform(5_000, 6_000, size=500),
        np_rng.uniform(6_000, 7_000, size=2_500),
        np_rng.uniform(0, PERIOD_PS, size=500),
    ])
    return np.sort(periods + offsets)


# ============================================================================
# CSV FIXTURES
# ============================================================================

@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a temp file and return its path."""
    def _write(text, name="timestamps.csv"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write
