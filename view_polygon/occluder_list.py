"""
Potential occluder list: occluders crossing the current sweep ray, ordered
front to back.
"""

import bisect
import functools
import logging
from typing import Hashable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from view_polygon.errors import SweepInvariantError
from view_polygon.geometry import Point, orientation
from view_polygon.occluders import BlockingType, Occluder
from view_polygon.ordering import SegmentOrder, compare_occluders

logger = logging.getLogger(__name__)


class PotentialOccluderList:
    """
    Occluders in play along the current sweep ray, nearest first.

    Every member straddles the current ray, which is what makes the local
    front-to-back comparison a consistent order. Insertion is a binary
    search with the comparator; two members that cross raise
    SweepInvariantError.

    Parameters:
        origin: Sweep origin
        channel: Channel whose blocking types are consulted
    """

    def __init__(self, origin: Point, channel: str = "sight"):
        self.origin = origin
        self.channel = channel
        self._items: List[Occluder] = []
        self._ids: Set[Hashable] = set()
        self._key = functools.cmp_to_key(self._compare)

    def _compare(self, s1: Occluder, s2: Occluder) -> int:
        if s1 is s2:
            return 0
        order = compare_occluders(s1, s2, self.origin)
        if order is SegmentOrder.CROSSES:
            raise SweepInvariantError(s1.id, s2.id)
        return -1 if order is SegmentOrder.FRONT else 1

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Occluder]:
        return iter(self._items)

    def __contains__(self, occluder: Occluder) -> bool:
        return occluder.id in self._ids

    def ids(self) -> List[Hashable]:
        return [occ.id for occ in self._items]

    def add_occluders(self, occluders: Iterable[Occluder]) -> List[Occluder]:
        """
        Insert occluders in front-to-back order.

        Occluders already present are skipped.

        Returns:
            The occluders actually inserted
        """
        added = []
        for occluder in occluders:
            if occluder.id in self._ids:
                continue
            bisect.insort(self._items, occluder, key=self._key)
            self._ids.add(occluder.id)
            added.append(occluder)
        return added

    def remove_occluder(self, occluder_id: Hashable) -> Optional[Occluder]:
        """Remove an occluder by id; returns it, or None if it was not present."""
        if occluder_id not in self._ids:
            return None
        for i, occluder in enumerate(self._items):
            if occluder.id == occluder_id:
                del self._items[i]
                self._ids.discard(occluder_id)
                return occluder
        return None

    def closest(self, skip_terrain: bool = False) -> Optional[Occluder]:
        """
        Nearest occluder along the current ray.

        Parameters:
            skip_terrain: Return the nearest opaque occluder instead
        """
        if not skip_terrain:
            return self._items[0] if self._items else None
        for occluder in self._items:
            if occluder.blocking_for(self.channel) is BlockingType.NORMAL:
                return occluder
        return None

    def second_closest(self) -> Optional[Occluder]:
        return self._items[1] if len(self._items) > 1 else None

    def blocker(self) -> Optional[Occluder]:
        """
        Occluder that actually bounds the view along the current ray.

        Vision passes through one terrain occluder, so a terrain occluder in
        front defers to whatever lies directly behind it.
        """
        closest = self.closest()
        if closest is None:
            return None
        if closest.blocking_for(self.channel) is BlockingType.TERRAIN:
            return self.second_closest()
        return closest

    def classify(self, occluder: Occluder, point: Point) -> int:
        """
        Role of ``point`` for ``occluder`` relative to the sweep direction.

        Returns +1 when the occluder starts at ``point`` (its other end lies
        ahead of the sweep), -1 when it ends there, 0 when it is in line with
        the origin.
        """
        return orientation(self.origin, point, occluder.other_end(point))

    def update_walls_from_endpoint(self, point: Point, occluders: Sequence[Occluder]) -> Tuple[List[Occluder], List[Occluder]]:
        """Apply one endpoint: drop occluders ending there, add those starting there."""
        return self.update_walls_from_event([(point, occluders)])

    def update_walls_from_event(
        self, endpoints: Sequence[Tuple[Point, Sequence[Occluder]]]
    ) -> Tuple[List[Occluder], List[Occluder]]:
        """
        Apply a group of co-angular endpoints.

        All trailing occluders are removed before any leading one is
        inserted, so the comparator never sees an occluder that has already
        left the sweep ray.

        Parameters:
            endpoints: (point, incident occluders) pairs

        Returns:
            (removed, added) occluder lists
        """
        removed: List[Occluder] = []
        leading: List[Occluder] = []
        for point, occluders in endpoints:
            for occluder in occluders:
                role = self.classify(occluder, point)
                if role < 0:
                    if self.remove_occluder(occluder.id) is not None:
                        removed.append(occluder)
                elif role > 0:
                    leading.append(occluder)
        added = self.add_occluders(leading)
        return removed, added
