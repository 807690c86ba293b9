"""Headless state engine for the conditional paper application form."""
