from tfchain.state.transform_set import CoordTransform, TransformSet

__all__ = [
    "CoordTransform",
    "TransformSet",
]
