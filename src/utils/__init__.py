"""Utility modules for experiment tracking and visualization.

Submodules:
- plotting: Scientific plot styling and palettes
- mlflow: MLflow tracking helpers

Import examples:
    from utils import plotting     # Auto-applies scientific styles
    from utils.mlflow import setup_mlflow_tracking
"""

import warnings

# Suppress MLflow FutureWarning about filesystem backend deprecation
warnings.filterwarnings("ignore", category=FutureWarning, module="mlflow")
