"""
Utility subpackage: runtime resources shared across the package.
"""
from cigarstats.utils.resources import RESOURCES, Resources, jit
