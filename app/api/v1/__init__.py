"""Versioned API (v1). Routers are assembled in `app.api.v1.routers.build_v1_router`."""
