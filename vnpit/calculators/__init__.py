"""Scenario calculators built on the tax engine."""
