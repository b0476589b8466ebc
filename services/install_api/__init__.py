"""installkit - Install API service.

FastAPI service driving an installation: readiness status, login lock,
license acceptance, seed templates, run-once scripts and first admin.
"""

__all__: list[str] = []
