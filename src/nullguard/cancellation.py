"""
Cooperative Cancellation.

A `CancellationToken` is passed explicitly through fix computation and fix-all.
Work checks it between phases and abandons its partial result when it is set.
"""

import threading
from typing import Optional


class CancellationToken:
  """
  Thread-safe cancellation flag, optionally linked to a parent token.

  A linked token reports cancellation when either it or any ancestor was cancelled;
  cancelling a linked token does not affect its parent.
  """

  def __init__(self, parent: Optional["CancellationToken"] = None):
    self._event = threading.Event()
    self._parent = parent

  def cancel(self) -> None:
    self._event.set()

  @property
  def is_cancelled(self) -> bool:
    token: Optional[CancellationToken] = self
    while token is not None:
      if token._event.is_set():
        return True
      token = token._parent
    return False

  def linked(self) -> "CancellationToken":
    """Returns a child token that also observes this token's cancellation."""
    return CancellationToken(parent=self)

  def __repr__(self) -> str:
    return f"<CancellationToken cancelled={self.is_cancelled}>"
