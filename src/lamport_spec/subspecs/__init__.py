"""Subspecifications for the Lamport signature package."""
