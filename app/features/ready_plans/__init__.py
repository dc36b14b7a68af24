"""
Ready plans feature package.

Generates batches of pre-scheduled meetups between a user and compatible
local connections. Every layer of the flow lives here: domain models and
errors, the ranking and scheduling pipeline, repositories, services and the
API router (``api.router``, mounted by ``app.main``).
"""
