"""Read, validate and build Documenter-style documentation search indexes."""
