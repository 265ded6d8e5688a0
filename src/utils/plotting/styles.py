"""Style application for matplotlib plots.

Uses seaborn's theme as a base with a few overrides for small figures.
"""

import matplotlib.pyplot as plt
import seaborn as sns


def apply_styles(context: str = "paper") -> None:
    """Apply the seaborn theme and project overrides.

    Parameters
    ----------
    context : str, default "paper"
        Seaborn plotting context.
    """
    sns.set_theme(context=context, style="whitegrid")
    plt.rcParams.update(
        {
            "figure.figsize": (6.0, 4.0),
            "figure.dpi": 120,
            "savefig.bbox": "tight",
            "axes.grid.which": "both",
        }
    )
