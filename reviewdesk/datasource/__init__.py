"""
Data sources backed by external review APIs.
"""
