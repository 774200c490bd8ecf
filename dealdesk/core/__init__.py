"""Domain model and pure list derivations for deals."""
