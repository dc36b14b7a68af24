"""
Ready plans pipeline packages.

``ranking`` orders a user's local connections by compatibility and
``scheduling`` turns the ranked list into plan drafts.
"""
