"""FastAPI application exposing the saloon booking core over HTTP."""
