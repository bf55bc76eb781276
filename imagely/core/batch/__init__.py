"""
Batch Module
============

Sequential render passes over a list of JSON data records.
"""
