"""
Core data models and utilities for gffparse.
"""
