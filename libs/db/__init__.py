"""Database utilities for journal entries."""

from . import models
from .database import Base, Database
from .repositories import EntryRepo, UserRepo, to_domain

__all__ = ["models", "Base", "Database", "EntryRepo", "UserRepo", "to_domain"]
