"""
Skewed dataset generation and loading layer.

Structure:
- models/: Pure data classes (Entity, ComplianceFiling, Invoice, ...)
- config/: Skew distributions and generator/database settings
- generators/: Skew functions, dataset generator, distribution profiling
- loaders/: Relational schema and SQL loader
"""

# Import from generators package (generation logic)
from .generators import SkewedDatasetGenerator, profile_dataset

# Import from config package
from .config import GeneratorConfig, load_settings

# Import loaders
from .loaders import SkewedDatasetLoader

__all__ = [
    # Generators
    "SkewedDatasetGenerator",
    "profile_dataset",
    # Config
    "GeneratorConfig",
    "load_settings",
    # Loaders
    "SkewedDatasetLoader",
]
