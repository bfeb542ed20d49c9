import logging
import weakref
from typing import Iterator, List, Optional

import utils
from harness import Allocator, AllocationError

logger = logging.getLogger(__name__)

default_allocator = Allocator()


class Node:
    __slots__ = ('value', 'next', '__weakref__')

    def __init__(self) -> None:
        self.value: bytearray = None
        self.next: Node = None


class Queue:
    '''
    Queue of byte strings implemented using a singly linked list.

    The queue owns the chain starting at head, every node owns its value.
    tail is a weak reference, it only makes insert_tail O(1).
    Access must be serialized by the caller, the queue is not thread-safe.
    '''

    def __init__(self, allocator: Allocator = None) -> None:
        self.allocator: Allocator = allocator if allocator is not None else default_allocator
        self.head: Node = None
        self._tail: weakref.ref = None
        self._size: int = 0

        self.allocator.track(self, 'queue')

    @property
    def tail(self) -> Optional[Node]:
        return self._tail() if self._tail is not None else None

    def _new_node(self, s) -> Node:
        node = self.allocator.track(Node(), 'node')
        try:
            node.value = self.allocator.strdup(s)
        except AllocationError:
            self.allocator.release(node)
            raise
        return node

    def _release_node(self, node: Node) -> None:
        self.allocator.release(node.value)
        node.value = None
        node.next = None
        self.allocator.release(node)

    def _prepare(self, s, where: str) -> Optional[Node]:
        try:
            value = utils.to_value(s)
        except (TypeError, UnicodeEncodeError) as e:
            logger.warning(f'insert {where}: {e}')
            return None

        try:
            return self._new_node(value)
        except AllocationError as e:
            logger.warning(f'insert {where}: {e}')
            return None

    def insert_head(self, s) -> bool:
        ''' insert a copy of s at the head, return False if no space '''

        node = self._prepare(s, 'head')
        if node is None:
            return False

        node.next = self.head
        self.head = node
        if self._tail is None:
            self._tail = weakref.ref(node)
        self._size += 1
        logger.debug(f'insert head:{bytes(node.value)!r} size:{self._size}')
        return True

    def insert_tail(self, s) -> bool:
        ''' insert a copy of s at the tail, return False if no space '''

        node = self._prepare(s, 'tail')
        if node is None:
            return False

        tail = self.tail
        if tail is None:
            self.head = node
        else:
            tail.next = node
        self._tail = weakref.ref(node)
        self._size += 1
        logger.debug(f'insert tail:{bytes(node.value)!r} size:{self._size}')
        return True

    def remove_head(self, buf: bytearray = None, bufsize: int = None) -> bool:
        '''
        Remove the head element. If buf is given, up to bufsize-1 bytes of the
        removed value are copied into it followed by a b'\\0' terminator;
        longer values are truncated. bufsize defaults to len(buf), 0 means
        no output buffer.
        Return False if the queue is empty.
        '''

        node = self.head
        if node is None:
            logger.warning('remove head: queue is empty')
            return False

        if bufsize is None:
            bufsize = len(buf) if buf is not None else 0
        if buf is not None and bufsize > 0:
            utils.bounded_copy(buf, node.value, bufsize)

        self.head = node.next
        if self.head is None:
            self._tail = None
        self._size -= 1
        logger.debug(f'remove head:{bytes(node.value)!r} size:{self._size}')
        self._release_node(node)
        return True

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self.head is None

    def first(self) -> bytes:
        if self.head is None:
            raise IndexError('first from empty queue')
        return bytes(self.head.value)

    def last(self) -> bytes:
        if self._tail is None:
            raise IndexError('last from empty queue')
        return bytes(self.tail.value)

    def reverse(self) -> None:
        ''' reverse the links in place, no element is allocated or freed '''

        if self._size <= 1:
            return

        prev = None
        cur = self.head
        while cur is not None:
            forward = cur.next
            cur.next = prev
            prev = cur
            cur = forward

        self._tail = weakref.ref(self.head)
        self.head = prev
        logger.debug(f'reversed {self._size} elements')

    def sort(self) -> None:
        ''' stable ascending merge sort of the existing nodes '''

        if self._size < 2:
            return

        self.head = merge_sort(self.head)

        # the old tail is still in the chain, walk from it to the new end
        node = self.tail
        while node.next is not None:
            node = node.next
        self._tail = weakref.ref(node)
        logger.debug(f'sorted {self._size} elements')

    def free(self) -> None:
        ''' release every element, then the queue itself '''

        node = self.head
        while node is not None:
            self.head = node.next
            self._release_node(node)
            node = self.head
        self._tail = None
        self._size = 0

        self.allocator.release(self)

    def to_list(self) -> List[bytes]:
        return list(self)

    def __iter__(self) -> Iterator[bytes]:
        node = self.head
        while node is not None:
            yield bytes(node.value)
            node = node.next

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f'Queue(size={self._size})'


def merge_sort(head: Node) -> Node:
    ''' sort the chain starting at head, return the new head '''

    if head.next is None:
        return head

    # slow stops at the last node of the first half
    slow = head
    fast = head.next
    while fast is not None and fast.next is not None:
        slow = slow.next
        fast = fast.next.next

    right = slow.next
    slow.next = None

    return merge(merge_sort(head), merge_sort(right))


def merge(left: Node, right: Node) -> Node:
    ''' merge two sorted chains, equal values are taken from left first '''

    if utils.strcmp(left.value, right.value) <= 0:
        head, left = left, left.next
    else:
        head, right = right, right.next

    node = head
    while left is not None and right is not None:
        if utils.strcmp(left.value, right.value) <= 0:
            node.next = left
            left = left.next
        else:
            node.next = right
            right = right.next
        node = node.next

    node.next = left if left is not None else right
    return head


def create(allocator: Allocator = None) -> Queue:
    ''' create an empty queue, raise AllocationError if there is no space '''

    return Queue(allocator)


def destroy(q: Queue) -> None:
    if q is None:
        return
    q.free()


def insert_head(q: Queue, s) -> bool:
    if q is None:
        logger.warning('insert head: invalid queue')
        return False
    return q.insert_head(s)


def insert_tail(q: Queue, s) -> bool:
    if q is None:
        logger.warning('insert tail: invalid queue')
        return False
    return q.insert_tail(s)


def remove_head(q: Queue, buf: bytearray = None, bufsize: int = None) -> bool:
    if q is None:
        logger.warning('remove head: invalid queue')
        return False
    return q.remove_head(buf, bufsize)


def size(q: Queue) -> int:
    return 0 if q is None else q.size()


def reverse(q: Queue) -> None:
    if q is not None:
        q.reverse()


def sort(q: Queue) -> None:
    if q is not None:
        q.sort()
