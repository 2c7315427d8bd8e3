"""
Utility modules: shared resources and structural protocols.
"""
