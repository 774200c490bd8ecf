"""Collaborators living outside the list engine: owner directory and mailer."""
