"""Protocols for the collaborators of the discovery core."""
