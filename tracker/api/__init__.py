"""HTTP trigger and read surface (FastAPI)."""
