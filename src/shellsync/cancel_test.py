from __future__ import annotations

import threading

from shellsync.cancel import CancelToken


def test_cancel_is_sticky():
    token = CancelToken()
    assert not token.cancelled
    token.cancel()
    token.cancel()
    assert token.cancelled
    assert token.wait(0) is True


def test_wait_times_out_when_not_cancelled():
    assert CancelToken().wait(0.01) is False


def test_cancelling_parent_cancels_children():
    parent = CancelToken()
    child = parent.child()
    grandchild = child.child()

    parent.cancel()

    assert child.cancelled
    assert grandchild.cancelled


def test_cancelling_child_leaves_parent_alone():
    parent = CancelToken()
    child = parent.child()
    child.cancel()
    assert child.cancelled
    assert not parent.cancelled


def test_child_of_cancelled_token_starts_cancelled():
    parent = CancelToken()
    parent.cancel()
    assert parent.child().cancelled


def test_wait_wakes_up_on_cancel():
    token = CancelToken()
    threading.Timer(0.05, token.cancel).start()
    assert token.wait(5) is True


def test_cancel_while_child_is_being_registered():
    # a signal handler runs on the thread that may be inside child()
    parent = CancelToken()
    with parent._lock:
        parent.cancel()
        assert parent.cancelled
    assert parent.child().cancelled
