"""
HRFlow - Services
"""
