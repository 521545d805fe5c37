"""
Personal finance calculator.
"""
