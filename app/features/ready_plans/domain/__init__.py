"""
Domain layer for the ready plans feature.

Dataclasses shared by the scheduling pipeline, the repositories and the
API layer, plus the feature's error hierarchy.
"""
