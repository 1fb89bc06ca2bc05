"""
Errors raised when a fact cannot be accepted into a transform set.

Unknown frames are not errors: lookups return ``None`` for them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tfchain.common.rigid_transform import RigidTransform


class InsertionError(Exception):
    """Base class for rejected facts."""


class InconsistentTransformError(InsertionError):
    """
    A frame pair was asserted with a value that disagrees with what the set
    already derives for it.

    Attributes:
        src, dst: The frame pair of the rejected fact
        expected: Transform already derivable from accepted facts
        actual: Transform carried by the rejected fact
    """

    def __init__(self, src: str, dst: str, expected: "RigidTransform", actual: "RigidTransform"):
        self.src = src
        self.dst = dst
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"inconsistent transform '{src}' -> '{dst}'\n"
            f"  expect: {expected.describe()}\n"
            f"  but found: {actual.describe()}"
        )


class InvalidSelfLoopError(InsertionError):
    """A fact relates a frame to itself with a non-identity transform."""

    def __init__(self, frame: str, actual: "RigidTransform"):
        self.frame = frame
        self.actual = actual
        super().__init__(
            f"self-loop on '{frame}' must be the identity, found: {actual.describe()}"
        )
