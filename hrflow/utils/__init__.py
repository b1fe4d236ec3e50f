"""
HRFlow - Utilities
"""
