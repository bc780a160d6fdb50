"""
Request helpers: auth, caller metadata and text normalization.
"""
