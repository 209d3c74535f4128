"""gifstream: paginated, cached browsing of the GIPHY catalogue."""
