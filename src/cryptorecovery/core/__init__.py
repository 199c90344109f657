"""Configuration, storage, lookup client and other shared infrastructure."""
