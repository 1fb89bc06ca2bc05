"""
ChainLedger: binary-doubling transform table for one connected group of frames.

Frames are laid out along a chain in first-seen order. Each frame receives an
integer position that is never reused. For every position p the ledger keeps a
level table:

    L[p][k] = T_{p, p + 2^k}     (defined while p + 2^k < len(ledger))

so that any span decomposes into O(log n) stored entries, the same way a
sparse table answers range queries. The table satisfies the telescoping
relation

    L[p][k] == L[p][k-1] ∘ L[p + 2^(k-1)][k-1]

Operations:
- append: add a frame after the last one, O(log n)
- range_compose: transform between any two positions, O(log n)
- merge: concatenate another ledger behind this one, O(m log(n + m))
- check_invariants: debug self-check of the telescoping relation and of
  orthonormal rotations
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from tfchain.common.rigid_transform import RigidTransform
from tfchain.constants import TRANSFORM_EPSILON

logger = logging.getLogger(__name__)


class ChainLedger:
    """
    Level tables over a chain of frames.

    Attributes:
        frames: Frame name per position
        levels: Per-position level table (``levels[p][k]`` spans 2^k steps)
    """

    __slots__ = ("_frames", "_positions", "_levels")

    def __init__(self) -> None:
        self._frames: List[str] = []
        self._positions: Dict[str, int] = {}
        self._levels: List[List[RigidTransform]] = []

    @classmethod
    def create(cls, frame: str) -> "ChainLedger":
        """Seed a ledger with its first frame."""
        ledger = cls()
        ledger._push_frame(frame)
        return ledger

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, frame: object) -> bool:
        return frame in self._positions

    def __iter__(self) -> Iterator[str]:
        return iter(self._frames)

    @property
    def frames(self) -> Tuple[str, ...]:
        return tuple(self._frames)

    @property
    def last(self) -> int:
        """Position of the most recently appended frame."""
        if not self._frames:
            raise IndexError("ledger is empty")
        return len(self._frames) - 1

    def position(self, frame: str) -> Optional[int]:
        return self._positions.get(frame)

    def frame_at(self, position: int) -> str:
        return self._frames[position]

    def range_compose(self, start: int, end: int) -> RigidTransform:
        """
        Transform from the frame at ``start`` to the frame at ``end``.

        Walks from the lower position to the higher one, consuming the lowest
        set bit of the remaining distance at each step. The product is
        inverted when ``start > end``.
        """
        size = len(self._frames)
        if not (0 <= start < size and 0 <= end < size):
            raise IndexError(f"positions ({start}, {end}) out of range for ledger of {size}")

        if start == end:
            return RigidTransform.identity()

        lo, hi = (start, end) if start < end else (end, start)

        diff = hi - lo
        curr = lo
        prod = RigidTransform.identity()
        while diff:
            step = diff & -diff
            pow_ = step.bit_length() - 1
            prod = prod.compose(self._levels[curr][pow_])
            diff ^= step
            curr += step

        assert curr == hi
        return prod.inverse() if start > end else prod

    def get(self, src: str, dst: str) -> Optional[RigidTransform]:
        """Transform between two frames by name, or None if either is absent."""
        src_pos = self._positions.get(src)
        dst_pos = self._positions.get(dst)
        if src_pos is None or dst_pos is None:
            return None
        return self.range_compose(src_pos, dst_pos)

    def edges(self) -> Iterator[Tuple[str, str, RigidTransform]]:
        """Adjacent chain pairs with their single-step transforms."""
        for pos in range(len(self._frames) - 1):
            yield self._frames[pos], self._frames[pos + 1], self._levels[pos][0]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, frame: str, transform_from_last: RigidTransform) -> int:
        """
        Add ``frame`` after the current last frame.

        Args:
            frame: New frame name (must not already be in the ledger)
            transform_from_last: Transform from the current last frame to ``frame``

        Returns:
            The position assigned to ``frame``
        """
        if not self._frames:
            raise ValueError("cannot append to an empty ledger; use ChainLedger.create")
        if frame in self._positions:
            raise ValueError(f"frame '{frame}' is already in the ledger")

        new_pos = self._push_frame(frame)

        # T_{idx, new} for idx = new - 2^nth, built right to left:
        # T_{idx - 2^nth, new} = L[idx - 2^nth][nth] ∘ T_{idx, new}
        span = transform_from_last
        nth = 0
        while True:
            offset = 1 << nth
            idx = new_pos - offset
            levels = self._levels[idx]
            assert len(levels) == nth, f"level table of position {idx} has {len(levels)} entries, expected {nth}"
            levels.append(span)

            prev = idx - offset
            if prev < 0:
                break
            span = self._levels[prev][nth].compose(span)
            nth += 1

        return new_pos

    def merge(self, other: "ChainLedger", bridge: RigidTransform) -> "ChainLedger":
        """
        Concatenate ``other`` behind this ledger.

        ``other``'s frames continue the numbering after this ledger's last
        position, and each of its edges is replayed as one append. Cost is
        O(m log(n + m)) for an ``other`` of m frames; nothing is amortized
        across merges. Both inputs are consumed: ``other`` is left empty and
        the returned ledger is ``self``.

        Args:
            other: Ledger to absorb (must share no frame with this one)
            bridge: Transform from this ledger's last frame to ``other``'s first frame
        """
        if not other._frames:
            raise ValueError("cannot merge an empty ledger")
        shared = [frame for frame in other._frames if frame in self._positions]
        if shared:
            raise ValueError(f"ledgers share frames {shared}; merge requires disjoint chains")

        logger.debug("Merging ledger of %d frames behind ledger of %d frames", len(other), len(self))
        self.append(other._frames[0], bridge)
        for frame, levels in zip(other._frames[1:], other._levels):
            self.append(frame, levels[0])

        other._frames = []
        other._positions = {}
        other._levels = []
        return self

    def _push_frame(self, frame: str) -> int:
        pos = len(self._frames)
        self._frames.append(frame)
        self._positions[frame] = pos
        self._levels.append([])
        return pos

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------

    def check_invariants(self, epsilon: float = TRANSFORM_EPSILON) -> None:
        """
        Re-derive every level from its two half levels and check that every
        stored rotation is orthonormal.

        Raises:
            AssertionError: If a level table has the wrong length, a level
                rotation is not orthonormal, or a level disagrees with the
                composition of its halves beyond epsilon
        """
        size = len(self._frames)
        if len(self._levels) != size or len(self._positions) != size:
            raise AssertionError(
                f"ledger bookkeeping out of sync: {size} frames, "
                f"{len(self._positions)} positions, {len(self._levels)} level tables"
            )

        for pos, levels in enumerate(self._levels):
            expected_len = 0
            while pos + (1 << expected_len) < size:
                expected_len += 1
            if len(levels) != expected_len:
                raise AssertionError(
                    f"position {pos} ('{self._frames[pos]}') holds {len(levels)} levels, "
                    f"expected {expected_len}"
                )

            for k, level in enumerate(levels):
                R = level.rotation
                if not np.allclose(R @ R.T, np.eye(3), rtol=0.0, atol=epsilon):
                    raise AssertionError(
                        f"level {k} of position {pos} ('{self._frames[pos]}') "
                        f"is not a rotation: |R R^T - I| = {np.abs(R @ R.T - np.eye(3)).max():.3e}"
                    )

            for k in range(1, len(levels)):
                half = 1 << (k - 1)
                recomposed = levels[k - 1].compose(self._levels[pos + half][k - 1])
                if not levels[k].approx_eq(recomposed, epsilon):
                    raise AssertionError(
                        f"the conversion {self._frames[pos]}->{self._frames[pos + 2 * half]} is not "
                        f"consistent with {self._frames[pos]}->{self._frames[pos + half]} * "
                        f"{self._frames[pos + half]}->{self._frames[pos + 2 * half]}"
                    )
