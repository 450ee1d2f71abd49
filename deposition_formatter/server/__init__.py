"""HTTP API: FastAPI app, session store, and access gate."""
