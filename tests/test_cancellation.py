"""
Tests for Cancellation Tokens.

Verifies:
1. Tokens start uncancelled and stay cancelled once set.
2. Linked tokens observe their ancestors, but not the other way round.
"""

from nullguard.cancellation import CancellationToken


def test_cancel():
  token = CancellationToken()
  assert not token.is_cancelled

  token.cancel()
  token.cancel()

  assert token.is_cancelled
  assert "cancelled=True" in repr(token)


def test_linked_tokens_follow_parent():
  root = CancellationToken()
  child = root.linked()
  grandchild = child.linked()

  root.cancel()

  assert child.is_cancelled
  assert grandchild.is_cancelled


def test_child_does_not_cancel_parent():
  root = CancellationToken()
  child = root.linked()
  sibling = root.linked()

  child.cancel()

  assert child.is_cancelled
  assert not root.is_cancelled
  assert not sibling.is_cancelled
