"""
Seed data loading for the Allowance Service.
"""
