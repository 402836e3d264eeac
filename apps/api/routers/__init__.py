"""Routers package."""

from . import (
    health,
    generate,
    blueprints,
    share,
)
