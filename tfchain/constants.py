"""
tfchain constants.

All magic numbers are centralized here with clear documentation.
"""

# =============================================================================
# Transform Comparison
# =============================================================================

# Absolute tolerance when comparing two transforms element-wise.
# Transforms reached through different composition paths drift by a few ULPs
# per product; 1e-6 absorbs that drift for translations up to ~1e6 units.
TRANSFORM_EPSILON = 1e-6

# =============================================================================
# Numerical Stability Thresholds (computational path only)
# =============================================================================

# Small-angle threshold for rotation vector <-> matrix conversions
ROTATION_EPSILON = 1e-10

# Threshold for the θ ≈ π branch of the SO(3) logarithm
SINGULARITY_EPSILON = 1e-6

# Quaternions / axes with a norm below this cannot be normalized
NORM_EPSILON = 1e-10

# Orthogonality tolerance accepted for user-supplied rotation matrices
ORTHOGONALITY_TOLERANCE = 1e-5

# =============================================================================
# Configuration Sections
# =============================================================================

# Top-level keys read from YAML parameter files
TRANSFORM_SET_SECTION = "transform_set"
OUTPUT_SECTION = "output"
