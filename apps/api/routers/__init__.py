"""Routers package."""

from . import (
    health,
    auth,
    profile,
    skills,
    goals,
    resources,
    posts,
    admin,
    concerns,
    notifications,
    stats,
    users_admin,
)
