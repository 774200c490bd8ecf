"""Stateful list view components driven by user actions."""
