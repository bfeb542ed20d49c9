import logging
import random
from typing import Dict, Iterable, List, Tuple

logger = logging.getLogger(__name__)


class AllocationError(MemoryError):
    ''' storage for a queue, node or value could not be obtained '''


class HarnessError(Exception):
    ''' misuse detected by the allocation harness '''


class Allocator:
    ''' untracked allocator used when a queue is created without one '''

    def track(self, obj, kind: str):
        return obj

    def release(self, obj) -> None:
        pass

    def strdup(self, s) -> bytearray:
        return self.track(bytearray(s), 'value')


class TrackingAllocator(Allocator):
    '''
    Allocator that records every live block and can refuse allocations.

    An allocation fails if its kind is listed in fail_kinds, if malloc is
    disabled, or at random with fail_probability percent.
    '''

    FAIL_PROBABILITY = 0  # [%]
    KINDS = ('queue', 'node', 'value')

    def __init__(self, fail_probability: int = None, fail_kinds: Iterable[str] = (), seed=None) -> None:
        if fail_probability is None:
            fail_probability = TrackingAllocator.FAIL_PROBABILITY
        assert 0 <= fail_probability <= 100, 'fail probability must be a percentage'
        for kind in fail_kinds:
            assert kind in TrackingAllocator.KINDS, f'unknown block kind \'{kind}\''

        self.fail_probability: int = fail_probability
        self.fail_kinds: set[str] = set(fail_kinds)
        self.malloc_enabled: bool = True
        self.total_allocations: int = 0
        self.failed_allocations: int = 0

        self._random = random.Random(seed)
        # holding each block keeps its id from being reused while it is live
        self._blocks: Dict[int, Tuple[str, object]] = {}

    @property
    def allocated(self) -> int:
        ''' number of live blocks '''
        return len(self._blocks)

    def allocated_by_kind(self, kind: str) -> int:
        return sum(1 for k, _ in self._blocks.values() if k == kind)

    def _should_fail(self, kind: str) -> bool:
        if not self.malloc_enabled or kind in self.fail_kinds:
            return True
        if self.fail_probability == 0:
            return False
        return self._random.randint(1, 100) <= self.fail_probability

    def track(self, obj, kind: str):
        if self._should_fail(kind):
            self.failed_allocations += 1
            logger.debug(f'{kind} allocation refused')
            raise AllocationError(f'could not allocate {kind}')

        assert id(obj) not in self._blocks, 'block tracked twice'
        self._blocks[id(obj)] = (kind, obj)
        self.total_allocations += 1
        return obj

    def release(self, obj) -> None:
        block = self._blocks.pop(id(obj), None)
        if block is None:
            logger.error(f'attempted to free unallocated block {type(obj).__name__}')
            raise HarnessError('attempted to free unallocated or already freed block')

    def check_empty(self) -> None:
        ''' raise if any block is still allocated '''

        if self._blocks:
            leaked = ', '.join(
                f'{kind}:{self.allocated_by_kind(kind)}' for kind in TrackingAllocator.KINDS
                if self.allocated_by_kind(kind))
            raise HarnessError(f'{self.allocated} blocks still allocated ({leaked})')


def check_queue(q) -> List[bytes]:
    ''' verify the queue invariants, return the values head to tail '''

    values = []
    size = q.size()
    tail = q.tail
    if q.head is None or tail is None or size == 0:
        if not (q.head is None and tail is None and size == 0):
            raise HarnessError(
                f'inconsistent empty queue: head={q.head!r} tail={tail!r} size={size}')
        return values

    node = q.head
    last = None
    while node is not None:
        values.append(bytes(node.value))
        if len(values) > size:
            raise HarnessError(f'chain longer than size {size}')
        last = node
        node = node.next

    if len(values) != size:
        raise HarnessError(f'size is {size} but chain holds {len(values)} nodes')
    if last is not tail:
        raise HarnessError('tail does not reference the last node')

    return values
