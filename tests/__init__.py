# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_property_input, make_submissions
"""

from .utils import make_property_input, make_stored_property, make_submissions

__all__ = ["make_property_input", "make_submissions", "make_stored_property"]
