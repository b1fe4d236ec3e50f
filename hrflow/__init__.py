"""
HRFlow - Payroll Approval Service

Multi-level payroll approval workflow for the HRFlow HR/payroll platform.
"""

__version__ = "0.1.0"
