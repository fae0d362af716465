"""
SpotiRelay Test Suite
"""
