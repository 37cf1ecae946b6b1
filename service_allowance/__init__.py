"""
PTS allowance service.
"""
