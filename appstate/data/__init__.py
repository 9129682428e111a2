"""Identity database context."""

from .db_context import ApplicationDbContext, ApplicationUser

__all__ = ["ApplicationDbContext", "ApplicationUser"]
