"""
Page objects for the checkbox E2E suite.
"""

from checkbox_e2e.pages.checkbox_page import CheckboxPage

__all__ = ["CheckboxPage"]
