"""Small helpers shared across DealDesk modules."""
