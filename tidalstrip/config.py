"""
Default parameters for the tidal radius solver. Constructor keyword
arguments fall back on these values.
"""

"""King (1962) model"""
EFFICIENCY_CENTRIFUGAL = 1.0
APPLY_PRE_INFALL       = False

"""Root finding"""
TOLERANCE_ABSOLUTE = 0.0
TOLERANCE_RELATIVE = 1e-3
MAXIMUM_ITERATIONS = 100

"""Bracket expansion"""
EXPAND_MULTIPLIER_INITIAL   = 2.0
EXPAND_MULTIPLIER_CONVERGED = 1.2
RADIUS_TINY_FRACTION        = 1e-6
MAXIMUM_EXPANSIONS          = 100

VERBOSE = False
