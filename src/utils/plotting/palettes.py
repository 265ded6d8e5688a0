"""Color palettes for benchmark plots.

Colorblind-friendly (Paul Tol's vibrant) categorical colours, plus a fixed
mapping from benchmark phase to colour so every figure agrees.
"""

from typing import List

CATEGORICAL = [
    "#0077BB",  # Blue
    "#EE7733",  # Orange
    "#009988",  # Teal
    "#CC3311",  # Red
    "#33BBEE",  # Cyan
    "#EE3377",  # Magenta
    "#BBBBBB",  # Grey
]

# Run-log timer columns
PHASES = {
    "conv_time": "#0077BB",
    "step_time": "#EE7733",
    "soln_time": "#009988",
    "IO_time": "#BBBBBB",
}


def get_categorical(n: int = None) -> List[str]:
    """Get categorical palette colors, cycling if ``n`` exceeds the palette."""
    if n is None:
        return CATEGORICAL.copy()
    return (CATEGORICAL * ((n // len(CATEGORICAL)) + 1))[:n]
