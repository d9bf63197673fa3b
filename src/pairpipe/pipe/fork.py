"""Operations that split one pipeline or combine several.

tee() splits a single-pass source into independent branches that share one
replay buffer.  append() and zip() pull from several pipelines through their
consume() primitive.  All three re-key their output, since the original keys
of different branches or sources are not meaningful together (zip keeps the
receiver's key).

The pipelines handed to these operations, including the one they are called
on, must not be used afterwards.
"""
from typing import Annotated, Any, List, TYPE_CHECKING
import logging
from pairpipe.pipe.cursor import EXHAUSTED, Cursor

if TYPE_CHECKING:
    from pairpipe.pipe.core import Pipeline

logger = logging.getLogger(__name__)


class SharedBuffer:
    """Replay buffer shared by the branches of one tee() call.

    Upstream is pulled only by a branch that has read everything buffered so
    far; branches that are behind replay from the buffer.  Each upstream item
    is therefore pulled once and seen by every branch in upstream order, no
    matter how the branches interleave.

    The buffer grows without bound if one branch runs far ahead of another.
    With evict=True, items every branch has already read are dropped; a
    branch that is never read still pins everything.

    Attributes:
        positions: Absolute read position of each branch
        offset: Absolute position of the first item still held
    """

    def __init__(self, upstream: Cursor, branches: int, evict: bool = False):
        self._upstream = upstream
        self._items: List[Any] = []
        self.offset = 0
        self.positions = [0] * branches
        self.evict = evict

    @property
    def frontier(self) -> int:
        """Absolute position one past the last buffered item."""
        return self.offset + len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def read(self, branch: int):
        """Return (position, value) for the branch's next item, or EXHAUSTED."""
        position = self.positions[branch]
        if position < self.frontier:
            value = self._items[position - self.offset]
        else:
            item = self._upstream.consume()
            if item is EXHAUSTED:
                return EXHAUSTED
            value = item[1]
            self._items.append(value)
        self.positions[branch] = position + 1
        if self.evict:
            self._trim()
        return position, value

    def _trim(self):
        lowest = min(self.positions)
        if lowest > self.offset:
            del self._items[:lowest - self.offset]
            self.offset = lowest


def _branch(buffer: SharedBuffer, branch: int):
    while True:
        item = buffer.read(branch)
        if item is EXHAUSTED:
            return
        yield item


class BranchingOperations:
    """tee, append and zip mixed into Pipeline."""

    def tee(self,
            branches: Annotated[int, "Number of branches.  Values below 2 are raised to 2."] = 2,
            evict: Annotated[bool, "Drop buffered items once every branch has read them"] = False) -> List['Pipeline']:
        """Split this pipeline into independent branches.

        Each branch yields every upstream value, in order, re-keyed 0, 1, 2, ...
        Branches can be consumed in any order or interleaved; upstream side
        effects (peek actions, map functions) run once per item, not once per
        branch.

            evens, squares = Pipeline.from_(range(5)).tee()
            evens.filter(lambda x: x % 2 == 0).to_list()   # [0, 2, 4]
            squares.map(lambda x: x * x).to_list()         # [0, 1, 4, 9, 16]
        """
        branches = max(int(branches), 2)
        buffer = SharedBuffer(self._cursor, branches, evict=evict)
        logger.debug(f"tee created {branches} branches (evict={evict})")
        return [self._derive(_branch(buffer, index)) for index in range(branches)]

    def append(self, *pipelines: 'Pipeline') -> 'Pipeline':
        """Emit this pipeline's items, then the remaining items of each argument in order.

        Values are re-keyed 0, 1, 2, ... across the whole combined sequence.
        """
        cursor = self._cursor

        def gen():
            position = 0
            for _, value in cursor:
                yield position, value
                position += 1
            for pipeline in pipelines:
                while item := pipeline.consume():
                    yield position, item[1]
                    position += 1
        return self._derive(gen())

    def zip(self, *pipelines: 'Pipeline') -> 'Pipeline':
        """Combine this pipeline with others into tuples of values.

        Each step consumes one item from this pipeline, then one from every
        argument in order, and yields (key of this pipeline's item, (v0, v1, ...)).
        Iteration stops, without a partial tuple, as soon as any participant is
        exhausted, so the result is as long as the shortest input.  Items
        already consumed in the failed step are lost.
        """
        cursor = self._cursor

        def gen():
            while True:
                item = cursor.consume()
                if item is EXHAUSTED:
                    return
                key, value = item
                zipped = [value]
                for pipeline in pipelines:
                    other = pipeline.consume()
                    if other is EXHAUSTED:
                        return
                    zipped.append(other[1])
                yield key, tuple(zipped)
        return self._derive(gen())
