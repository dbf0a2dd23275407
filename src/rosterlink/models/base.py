"""Declarative base shared by the document store tables."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
