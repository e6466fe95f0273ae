"""
Chain Timer Test Suite
"""
