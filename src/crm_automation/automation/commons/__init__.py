"""Triggers, conditions and actions that ship with the engine."""
