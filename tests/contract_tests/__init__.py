"""Property tests over event log invariants."""
