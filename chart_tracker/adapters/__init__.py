"""Concrete package manager and image store backends."""
