"""
Core value types and parsers with no dependency on other gaflib modules.
"""
