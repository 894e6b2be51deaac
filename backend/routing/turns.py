# backend/routing/turns.py
"""
Turn penalties for the turn-aware Dijkstra.

The multipliers bias routes hard towards right turns: a right turn is almost
free, going straight costs 100x, a left turn 500000x and a sharp turn or
U-turn 100000x the edge length.
"""

RIGHT_TURN_PENALTY = 0.00001
STRAIGHT_PENALTY = 100.0
LEFT_TURN_PENALTY = 500000.0
SHARP_TURN_PENALTY = 100000.0

# First move out of the start node has no incoming heading
FIRST_MOVE_PENALTY = 1.0


def turn_angle(incoming: float, outgoing: float) -> float:
    """
    Signed heading change in degrees, normalized to (-180, 180].
    Positive = right (clockwise) turn, negative = left turn.
    """
    angle = (outgoing - incoming) % 360
    if angle > 180:
        angle -= 360
    return angle


def turn_penalty(angle: float) -> float:
    """Cost multiplier for a signed turn angle."""
    if angle > 0:
        return RIGHT_TURN_PENALTY
    if angle == 0:
        return STRAIGHT_PENALTY
    if angle >= -90:
        return LEFT_TURN_PENALTY
    return SHARP_TURN_PENALTY
