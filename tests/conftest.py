"""
Shared pytest fixtures for the queue tests.

- allocator: a TrackingAllocator so every test can check for leaks
- q: an empty queue built on that allocator, destroyed after the test
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import queueLL
from harness import TrackingAllocator


@pytest.fixture
def allocator():
    """Allocator that records every live block"""
    return TrackingAllocator(seed=0)


@pytest.fixture
def q(allocator):
    """Empty queue; freed on teardown, which must leave nothing allocated"""
    queue = queueLL.create(allocator)
    yield queue
    queueLL.destroy(queue)
    allocator.check_empty()


def fill(queue, values, where="tail"):
    """Insert values in order at the given end"""
    insert = queueLL.insert_tail if where == "tail" else queueLL.insert_head
    for value in values:
        assert insert(queue, value)
