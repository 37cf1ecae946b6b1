"""
Allowance rates package.
"""
