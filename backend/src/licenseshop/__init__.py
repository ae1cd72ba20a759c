"""
License Shop - invoice rendering and license-key delivery backend.
"""

__version__ = "0.1.0"
