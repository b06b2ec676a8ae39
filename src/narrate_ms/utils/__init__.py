"""
Utility Functions for narrate-ms.

    - text.py: Text canonicalization and filename sanitizing
    - timeit.py: Timing measurement
"""
