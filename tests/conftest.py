import random
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expgolomb import ExpGolombEncoder  # noqa: E402


@pytest.fixture()
def zeroed():
    """Factory for pre-zeroed destination buffers."""

    def make(size: int) -> bytearray:
        return bytearray(size)

    return make


@pytest.fixture()
def rng():
    """Seeded random source so failures are reproducible."""
    return random.Random(0)


def encode_unsigned(values, start=0, size=None):
    """Encode ``values`` into a fresh buffer and return ``(buffer, end)``.

    When ``size`` is omitted the buffer is made large enough for the worst
    case of 129 bits per value.
    """
    if size is None:
        size = (start + 129 * len(values)) // 8 + 1
    buf = bytearray(size)
    enc = ExpGolombEncoder(buf, start)
    for v in values:
        enc.put_unsigned(v)
    return buf, enc.close()


@pytest.fixture()
def encode_fn():
    """Provide the encode_unsigned helper without importing conftest."""
    return encode_unsigned
