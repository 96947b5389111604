import threading

import pytest

from pagecache.stack import (
    Node,
    Stack,
    StackCasError,
    iter_from,
    node_from_frag_vec,
)


def _run(target):
    t = threading.Thread(target=target)
    t.start()
    t.join()


def test_basic_functionality():
    ll = Stack()
    assert ll.pop() is None
    ll.push(1)

    def pusher():
        ll.push(2)
        ll.push(3)
        ll.push(4)

    _run(pusher)
    ll.push(5)
    assert ll.pop() == 5
    assert ll.pop() == 4

    results = []

    def popper():
        results.append(ll.pop())
        results.append(ll.pop())

    _run(popper)
    assert results == [3, 2]
    assert ll.pop() == 1

    leftover = []
    _run(lambda: leftover.append(ll.pop()))
    assert leftover == [None]


def test_iteration_is_top_first():
    s = Stack()
    for i in range(4):
        s.push(i)
    assert list(s) == [3, 2, 1, 0]


def test_cap_succeeds_on_current_head():
    s = Stack()
    s.push("a")
    head = s.head()
    new_head = s.cap(head, "b")
    assert s.head() is new_head
    assert list(s) == ["b", "a"]


def test_cap_fails_on_stale_head():
    s = Stack()
    s.push("a")
    stale = s.head()
    s.push("b")
    with pytest.raises(StackCasError) as info:
        s.cap(stale, "c")
    assert info.value.current is s.head()
    assert info.value.node.inner == "c"
    assert info.value.node.next is None
    assert list(s) == ["b", "a"]


def test_cas_replaces_whole_stack():
    s = Stack()
    s.push(1)
    s.push(2)
    replacement = node_from_frag_vec([9, 8])
    assert s.cas(s.head(), replacement) is replacement
    assert list(s) == [9, 8]


def test_cas_fails_on_stale_head():
    s = Stack()
    s.push(1)
    stale = s.head()
    s.push(2)
    replacement = Node(7)
    with pytest.raises(StackCasError) as info:
        s.cas(stale, replacement)
    assert info.value.node is replacement
    assert list(s) == [2, 1]


def test_node_from_frag_vec_order():
    node = node_from_frag_vec([1, 2, 3])
    assert list(iter_from(node)) == [1, 2, 3]
    assert node.inner == 1


def test_node_from_frag_vec_empty():
    with pytest.raises(ValueError):
        node_from_frag_vec([])


def test_concurrent_pushes_are_all_kept():
    s = Stack()

    def pusher(base):
        for i in range(200):
            s.push(base + i)

    threads = [threading.Thread(target=pusher, args=(n * 1000,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(s) == sorted(n * 1000 + i for n in range(4) for i in range(200))