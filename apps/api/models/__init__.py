"""Models package."""

from .blueprint import Blueprint
