"""Concrete workflows built on the engine."""
