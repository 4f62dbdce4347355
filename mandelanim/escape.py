import math

from numba import jit

ESCAPE_RADIUS_SQUARED = 64.0
_LOG2 = math.log(2.0)


@jit(nopython=True, cache=True)
def escape_time(a, b, max_iteration):
    """
    Iterate z -> z*z + c from z = 0 for c = a + bi.

    Returns (in_set, iteration, smooth). ``iteration`` counts the updates that
    stayed inside |z|^2 <= 64; a point that never leaves within
    ``max_iteration`` updates is in the set. ``smooth`` is the continuous
    escape count n + 1 - log2(log|z|/log 2), clamped at 0. It is 0.0 for
    points in the set and carries no meaning there.
    """
    iteration = 0
    a_current = 0.0
    b_current = 0.0
    magnitude = 0.0
    while iteration < max_iteration:
        a_squared = a_current * a_current
        b_squared = b_current * b_current
        b_current = 2.0 * a_current * b_current + b
        a_current = a_squared - b_squared + a
        magnitude = a_current * a_current + b_current * b_current
        if magnitude > ESCAPE_RADIUS_SQUARED:
            break
        iteration += 1

    smooth = 0.0
    in_set = iteration == max_iteration
    if not in_set:
        log_zn = math.log(magnitude) / 2.0
        nu = math.log(log_zn / _LOG2) / _LOG2
        smooth = iteration + 1.0 - nu
        if smooth < 0.0:
            smooth = 0.0
    return in_set, iteration, smooth


def warm_up():
    """Compile the float kernel in this process so forked workers inherit it."""
    escape_time(0.0, 0.0, 1)
