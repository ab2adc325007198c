"""Order webhook pipeline.

Each POST is signature-verified against the raw body, parsed, mapped to a
plan tier and written to the user store in a single update.
"""
