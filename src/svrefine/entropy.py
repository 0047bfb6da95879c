from __future__ import annotations

import math
from collections import Counter


def entropy(seq: str) -> float:
    """Shannon entropy (bits) of the symbol distribution of ``seq``.

    Empty and single-symbol strings have entropy 0.
    """
    n = len(seq)
    if n == 0:
        return 0.0
    h = 0.0
    for count in sorted(Counter(seq).values()):
        p = count / n
        h -= p * math.log2(p)
    # -0.0 for single-symbol input
    return abs(h)
