"""A non-cyclic doubly-linked list of page ids backing the LRU cache."""

from __future__ import annotations

from typing import Iterator, List, Optional


class _Node:
    __slots__ = ("value", "next", "prev", "__weakref__")

    def __init__(self, value: int, next_: Optional["_Node"], prev: Optional["_Node"]) -> None:
        self.value = value
        self.next = next_
        self.prev = prev

    def unwire(self) -> None:
        if self.prev is not None:
            self.prev.next = self.next
        if self.next is not None:
            self.next.prev = self.prev
        self.next = None
        self.prev = None


class Dll:
    """Doubly-linked list where nodes can be removed from the middle.

    The head holds the most recently pushed item; ``prev`` links point
    from the head towards the tail.
    """

    def __init__(self) -> None:
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None
        self._len = 0

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[int]:
        cursor = self._head
        while cursor is not None:
            yield cursor.value
            cursor = cursor.prev

    def push_head(self, item: int) -> _Node:
        """Insert at the head and return the node handle."""
        self._len += 1
        node = _Node(item, None, self._head)
        if self._head is not None:
            self._head.next = node
        if self._tail is None:
            self._tail = node
        self._head = node
        return node

    def push_tail(self, item: int) -> _Node:
        """Insert at the tail and return the node handle."""
        self._len += 1
        node = _Node(item, self._tail, None)
        if self._tail is not None:
            self._tail.prev = node
        if self._head is None:
            self._head = node
        self._tail = node
        return node

    def promote(self, node: _Node) -> _Node:
        """Move a node to the head, returning its new handle."""
        if self._head is node:
            return node
        return self.push_head(self.pop_node(node))

    def pop_head(self) -> Optional[int]:
        """Remove and return the head item, or None if empty."""
        head = self._head
        if head is None:
            return None
        self._len -= 1
        if head is self._tail:
            self._tail = None
        self._head = head.prev
        head.unwire()
        return head.value

    def pop_tail(self) -> Optional[int]:
        """Remove and return the tail item, or None if empty."""
        tail = self._tail
        if tail is None:
            return None
        self._len -= 1
        if self._head is tail:
            self._head = None
        self._tail = tail.next
        tail.unwire()
        return tail.value

    def pop_node(self, node: _Node) -> int:
        """Remove a node from anywhere in the list and return its item."""
        self._len -= 1
        if self._tail is node:
            self._tail = node.next
        if self._head is node:
            self._head = node.prev
        node.unwire()
        return node.value

    def to_list(self) -> List[int]:
        """Items from head to tail."""
        return list(self)