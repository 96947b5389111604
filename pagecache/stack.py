"""A stack that supports atomic pushes and compare-and-swap of its head."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


@dataclass(eq=False)
class Node(Generic[T]):
    """One element of a Stack, linked to the element below it."""

    inner: T
    next: Optional["Node[T]"] = None

    def __iter__(self) -> Iterator[T]:
        return iter_from(self)


class StackCasError(Exception):
    """The stack head was not the expected node.

    ``current`` is the actual head; ``node`` is the node that was not
    installed, handed back to the caller.
    """

    def __init__(self, current: Optional[Node[Any]], node: Node[Any]) -> None:
        super().__init__("stack head changed concurrently")
        self.current = current
        self.node = node


def iter_from(node: Optional[Node[T]]) -> Iterator[T]:
    """Yield the items of a chain of nodes, starting at ``node``."""
    while node is not None:
        yield node.inner
        node = node.next


def node_from_frag_vec(items: Iterable[T]) -> Node[T]:
    """Chain items into nodes, first item on top, and return the top node."""
    last: Optional[Node[T]] = None
    for item in reversed(list(items)):
        last = Node(item, last)
    if last is None:
        raise ValueError("at least one frag must be provided")
    return last


class Stack(Generic[T]):
    """A stack whose head can be pushed, popped or swapped atomically."""

    def __init__(self) -> None:
        self._head: Optional[Node[T]] = None
        self._lock = threading.Lock()

    def push(self, item: T) -> None:
        """Add an item on top of the stack."""
        with self._lock:
            self._head = Node(item, self._head)

    def pop(self) -> Optional[T]:
        """Remove and return the top item, or None if the stack is empty."""
        with self._lock:
            head = self._head
            if head is None:
                return None
            self._head = head.next
            return head.inner

    def head(self) -> Optional[Node[T]]:
        """Return the current head node, the key for ``cap`` and ``cas``."""
        return self._head

    def cap(self, old: Optional[Node[T]], new: T) -> Node[T]:
        """Push ``new`` only if the head is still ``old``; return the new head."""
        return self.cap_node(old, Node(new, old))

    def cap_node(self, old: Optional[Node[T]], node: Node[T]) -> Node[T]:
        """Push ``node`` on top of ``old`` if ``old`` is still the head."""
        with self._lock:
            node.next = old
            if self._head is not old:
                node.next = None
                raise StackCasError(self._head, node)
            self._head = node
            return node

    def cas(self, old: Optional[Node[T]], new: Optional[Node[T]]) -> Optional[Node[T]]:
        """Replace the whole stack with ``new`` if the head is still ``old``."""
        with self._lock:
            if self._head is not old:
                raise StackCasError(self._head, new)  # type: ignore[arg-type]
            self._head = new
            return new

    def __iter__(self) -> Iterator[T]:
        return iter_from(self._head)

    def __repr__(self) -> str:
        return f"Stack [{', '.join(repr(item) for item in self)}]"