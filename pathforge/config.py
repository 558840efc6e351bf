"""
Numeric defaults shared by the geometry engines.

Every engine function takes the relevant value as a keyword argument that
defaults to the constant defined here, so callers can tune a single call
without touching global state.
"""

# Generic "is this zero" threshold for lengths, determinants and areas.
EPSILON = 1e-9

# Two points closer than this are considered the same point.
POINT_TOLERANCE = 1e-7

# Curve subdivision stops once both candidate pieces are this close to their
# chords. Path-level intersection scales it by the size of the paths.
INTERSECTION_TOLERANCE = 1e-7

# Intersection records closer than this are merged into one. Scaled like
# INTERSECTION_TOLERANCE.
MERGE_TOLERANCE = 1e-6

# Recursion cap for curve subdivision. Hitting it yields no intersection for
# that branch.
MAX_SUBDIVISION_DEPTH = 40

# Maximum number of candidate pairs examined for a single pair of curves.
MAX_SUBDIVISION_PAIRS = 20000

# Maximum distance between a flattened polyline and the true curve.
FLATTEN_TOLERANCE = 1e-3

# Number of polyline samples used for length approximation.
LENGTH_SAMPLES = 32

# Default number of significant points sampled per shape for morphing.
MORPH_SAMPLES = 32

# Default number of decimals for rounded text output. None writes exact
# round-trippable floats.
TEXT_PRECISION = None
