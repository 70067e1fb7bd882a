"""Configuration for registrygc."""

from .settings import Config

__all__ = ['Config']
