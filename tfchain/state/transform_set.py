"""
TransformSet: group manager over independent ChainLedgers.

Frames that are related, directly or transitively, share a group; each group
owns one ChainLedger. The set routes lookups and inserts to the right ledger,
joins two groups when a fact bridges them, and rejects facts that disagree
with what is already derivable.

Insert cases for a fact (src, dst, T_src_dst):
- neither frame known: new group seeded with src, dst appended
- one frame known: the unknown frame is appended to the known frame's ledger
- both known, same group: consistency check, no-op or InconsistentTransformError
- both known, different groups: ledgers merged with the fact as bridge

A rejected insert leaves the set exactly as it was.
"""

from __future__ import annotations

import copy
import logging
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from tfchain.common.rigid_transform import RigidTransform
from tfchain.config import TransformSetParams
from tfchain.errors import InconsistentTransformError, InvalidSelfLoopError
from tfchain.structures.chain_ledger import ChainLedger
from tfchain.structures.topo_sort import TopologicalSort

logger = logging.getLogger(__name__)


class CoordTransform(NamedTuple):
    """A single fact: the transform from frame ``src`` to frame ``dst``."""
    src: str
    dst: str
    tf: RigidTransform


class TransformSet:
    """
    Related or disjoint coordinate transforms, indexed for O(log n) lookup.

    Attributes:
        params: Tolerance and debug settings
    """

    def __init__(self, params: Optional[TransformSetParams] = None):
        self.params = params or TransformSetParams()
        self._next_group_id = 0
        self._frame_to_group: Dict[str, int] = {}
        self._groups: Dict[int, ChainLedger] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, src: str, dst: str) -> Optional[RigidTransform]:
        """Transform from ``src`` to ``dst``, or None when they are not related."""
        src_gid = self._frame_to_group.get(src)
        dst_gid = self._frame_to_group.get(dst)
        if src_gid is None or dst_gid is None or src_gid != dst_gid:
            return None
        return self._groups[src_gid].get(src, dst)

    def contains(self, frame: str) -> bool:
        return frame in self._frame_to_group

    def __contains__(self, frame: object) -> bool:
        return frame in self._frame_to_group

    def __len__(self) -> int:
        """Number of known frames."""
        return len(self._frame_to_group)

    @property
    def frames(self) -> List[str]:
        return list(self._frame_to_group)

    def groups(self) -> List[Tuple[str, ...]]:
        """Frames of every group in chain order, groups by ascending id."""
        return [self._groups[gid].frames for gid in sorted(self._groups)]

    def group_of(self, frame: str) -> Optional[int]:
        return self._frame_to_group.get(frame)

    def to_facts(self) -> List[CoordTransform]:
        """
        Spanning representation: one fact per adjacent chain pair.

        A single-frame group is written as an identity self-loop so that the
        frame survives a rebuild.
        """
        facts: List[CoordTransform] = []
        for gid in sorted(self._groups):
            ledger = self._groups[gid]
            if len(ledger) == 1:
                frame = ledger.frame_at(0)
                facts.append(CoordTransform(frame, frame, RigidTransform.identity()))
                continue
            facts.extend(CoordTransform(src, dst, tf) for src, dst, tf in ledger.edges())
        return facts

    def __iter__(self) -> Iterator[CoordTransform]:
        return iter(self.to_facts())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, src: str, dst: str, tf: RigidTransform) -> None:
        """
        Accept the fact ``src -> dst = tf``.

        Raises:
            InvalidSelfLoopError: src == dst with a non-identity transform
            InconsistentTransformError: both frames already related with a
                different transform (state unchanged)
        """
        epsilon = self.params.epsilon

        if src == dst:
            if not tf.is_identity(epsilon):
                logger.debug("Rejecting self-loop on '%s'", src)
                raise InvalidSelfLoopError(src, tf)
            if src not in self._frame_to_group:
                self._register(ChainLedger.create(src))
            return

        src_gid = self._frame_to_group.get(src)
        dst_gid = self._frame_to_group.get(dst)

        if src_gid is None and dst_gid is None:
            ledger = ChainLedger.create(src)
            ledger.append(dst, tf)
            gid = self._register(ledger)
            logger.debug("New group %d from '%s' -> '%s'", gid, src, dst)

        elif dst_gid is None:
            self._extend(src_gid, src, dst, tf)

        elif src_gid is None:
            self._extend(dst_gid, dst, src, tf.inverse())

        elif src_gid == dst_gid:
            ledger = self._groups[src_gid]
            expect = ledger.get(src, dst)
            if not tf.approx_eq(expect, epsilon):
                logger.debug("Rejecting inconsistent fact '%s' -> '%s'", src, dst)
                raise InconsistentTransformError(src, dst, expect, tf)
            return

        else:
            self._merge_groups(src_gid, dst_gid, src, dst, tf)

        if self.params.check_invariants:
            self.check_invariants()

    def merge(self, other: "TransformSet") -> "TransformSet":
        """
        Fold every fact of ``other`` into this set.

        All-or-nothing: the work is done on a copy, and this set only takes
        the result once every fact has been accepted.

        Raises:
            InsertionError: If a fact of ``other`` is rejected (this set unchanged)
        """
        staged = copy.deepcopy(self)
        for src, dst, tf in other.to_facts():
            staged.insert(src, dst, tf)

        self._next_group_id = staged._next_group_id
        self._frame_to_group = staged._frame_to_group
        self._groups = staged._groups
        return self

    # ------------------------------------------------------------------
    # Bulk construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        facts: Iterable[CoordTransform | Tuple[str, str, RigidTransform]],
        params: Optional[TransformSetParams] = None,
    ) -> "TransformSet":
        """
        Build a set from an unordered list of facts.

        Frames are interned to integer ids, grouped into connected components,
        and each component is appended to a fresh ledger in breadth-first walk
        order. Facts that are not on a walk (cycles, duplicates) are then
        checked against the built ledgers.

        Raises:
            InvalidSelfLoopError: A self-loop with a non-identity transform
            InconsistentTransformError: Two facts disagree on a frame pair
        """
        tset = cls(params)
        epsilon = tset.params.epsilon
        facts = [CoordTransform(*fact) for fact in facts]

        names: List[str] = []
        ids: Dict[str, int] = {}

        def intern(name: str) -> int:
            fid = ids.get(name)
            if fid is None:
                fid = ids[name] = len(names)
                names.append(name)
            return fid

        topo: TopologicalSort[int] = TopologicalSort()
        adjacency: Dict[int, Dict[int, RigidTransform]] = {}

        for src, dst, tf in facts:
            src_id = intern(src)
            dst_id = intern(dst)
            if src_id == dst_id:
                if not tf.is_identity(epsilon):
                    raise InvalidSelfLoopError(src, tf)
            else:
                adjacency.setdefault(src_id, {}).setdefault(dst_id, tf)
                adjacency.setdefault(dst_id, {}).setdefault(src_id, tf.inverse())
            topo.insert_edge(src_id, dst_id)

        for component in topo.sort():
            ledger = ChainLedger.create(names[component.start])
            for parent_id, child_id in component.seq:
                parent_pos = ledger.position(names[parent_id])
                from_last = ledger.range_compose(ledger.last, parent_pos)
                ledger.append(names[child_id], from_last.compose(adjacency[parent_id][child_id]))
            tset._register(ledger)

        for src, dst, tf in facts:
            if src == dst:
                continue
            expect = tset.get(src, dst)
            if not tf.approx_eq(expect, epsilon):
                raise InconsistentTransformError(src, dst, expect, tf)

        if tset.params.check_invariants:
            tset.check_invariants()

        logger.info(
            "Built transform set: %d facts, %d frames, %d groups",
            len(facts), len(tset), len(tset._groups),
        )
        return tset

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_gid(self) -> int:
        gid = self._next_group_id
        self._next_group_id += 1
        return gid

    def _register(self, ledger: ChainLedger) -> int:
        gid = self._next_gid()
        self._groups[gid] = ledger
        for frame in ledger:
            self._frame_to_group[frame] = gid
        return gid

    def _extend(self, gid: int, known: str, new: str, tf_known_new: RigidTransform) -> None:
        """Append ``new`` to the ledger holding ``known``."""
        ledger = self._groups[gid]
        from_last = ledger.range_compose(ledger.last, ledger.position(known))
        ledger.append(new, from_last.compose(tf_known_new))
        self._frame_to_group[new] = gid

    def _merge_groups(
        self,
        src_gid: int,
        dst_gid: int,
        src: str,
        dst: str,
        tf: RigidTransform,
    ) -> None:
        """
        Join the groups of ``src`` and ``dst``.

        The smaller ledger is replayed behind the larger one, so the merge
        costs O(m log n) for a smaller side of m frames.
        """
        src_ledger = self._groups.pop(src_gid)
        dst_ledger = self._groups.pop(dst_gid)

        if len(src_ledger) >= len(dst_ledger):
            base, other, base_frame, other_frame, tf_base_other = (
                src_ledger, dst_ledger, src, dst, tf
            )
        else:
            base, other, base_frame, other_frame, tf_base_other = (
                dst_ledger, src_ledger, dst, src, tf.inverse()
            )

        # T_{last(base), first(other)} = T_{last, base_frame} ∘ T_{base_frame, other_frame} ∘ T_{other_frame, first}
        bridge = (
            base.range_compose(base.last, base.position(base_frame))
            .compose(tf_base_other)
            .compose(other.range_compose(other.position(other_frame), 0))
        )
        merged = base.merge(other, bridge)
        gid = self._register(merged)
        logger.debug(
            "Merged groups %d and %d into group %d (%d frames)",
            src_gid, dst_gid, gid, len(merged),
        )

    def check_invariants(self) -> None:
        """
        Debug self-check of the bookkeeping and every ledger.

        Raises:
            AssertionError: On any violated invariant
        """
        seen = 0
        for gid, ledger in self._groups.items():
            if len(ledger) == 0:
                raise AssertionError(f"group {gid} has an empty ledger")
            for frame in ledger:
                if self._frame_to_group.get(frame) != gid:
                    raise AssertionError(
                        f"frame '{frame}' is in group {gid} but mapped to "
                        f"{self._frame_to_group.get(frame)}"
                    )
            seen += len(ledger)
            ledger.check_invariants(self.params.epsilon)
        if seen != len(self._frame_to_group):
            raise AssertionError(
                f"{len(self._frame_to_group)} frames mapped but ledgers hold {seen}"
            )
