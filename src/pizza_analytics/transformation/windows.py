"""
Window primitives: ordered prefix sums and partitioned ranking.

These stand in for ``SUM() OVER (ORDER BY ...)`` and
``RANK() OVER (PARTITION BY ... ORDER BY ... DESC)``.
"""
from itertools import accumulate


def prefix_sums(values):
    """Lazily yield the running totals of ``values`` in input order."""
    return accumulate(values)


class PrefixScan:
    """
    Restartable running total over (key, value) pairs already sorted by key.

    Each iteration starts a fresh scan, so the object can be consumed any
    number of times. Duplicate keys keep their input order and still
    accumulate.
    """

    def __init__(self, keys, values, finish=None):
        self._keys = tuple(keys)
        self._values = tuple(values)
        if len(self._keys) != len(self._values):
            raise ValueError("keys and values must have the same length")
        self._finish = finish

    def __iter__(self):
        for key, total in zip(self._keys, prefix_sums(self._values)):
            yield self._finish(key, total) if self._finish else (key, total)

    def __len__(self):
        return len(self._keys)

    def __repr__(self):
        return f"PrefixScan({len(self)} points)"


def partitioned_rank(frame, partition_by, order_by, limit=None, tie_breaker=None, output='rank'):
    """
    Rank rows within each partition by ``order_by`` descending.

    Ties share a rank and the next distinct value skips ahead (standard
    competition ranking). Rows ranked above ``limit`` are dropped. The
    result is ordered by partition, rank, then ``tie_breaker`` if given.
    """
    ranked = frame.assign(**{
        output: frame.groupby(partition_by)[order_by]
        .rank(method='min', ascending=False)
        .astype('int64')
    })

    if limit is not None:
        ranked = ranked[ranked[output] <= limit]

    sort_keys = [partition_by, output] + ([tie_breaker] if tie_breaker else [])
    return ranked.sort_values(sort_keys, kind='mergesort').reset_index(drop=True)
