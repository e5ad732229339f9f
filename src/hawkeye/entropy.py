"""
Byte distribution metrics
"""

import math
import zlib
from collections import Counter
from typing import Optional

MAX_ENTROPY = 8.0

# Histogram is built in slices so a worker thread releases the GIL regularly
CHUNK_SIZE = 64 * 1024


def shannon_entropy(data: bytes) -> float:
    """
    Shannon entropy of a byte string in bits per byte (0.0 - 8.0).

    Encrypted or compressed content sits close to 8; plain code and
    padding fall well below.
    """
    if not data:
        return 0.0

    counts = Counter()
    view = memoryview(data)
    for start in range(0, len(view), CHUNK_SIZE):
        counts.update(view[start:start + CHUNK_SIZE].tobytes())

    total = len(data)
    entropy = 0.0
    for count in counts.values():
        p = count / total
        entropy -= p * math.log2(p)

    return min(max(entropy, 0.0), MAX_ENTROPY)


def compression_ratio(data: bytes, level: int = 6) -> Optional[float]:
    """Compressed size over original size, clamped to 0-1. None for empty data."""
    if not data:
        return None
    ratio = len(zlib.compress(data, level)) / len(data)
    return min(ratio, 1.0)
