"""
HRFlow - Pydantic Schemas
"""
