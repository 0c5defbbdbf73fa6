from __future__ import annotations

from expohub.core.application import create_application


# Instância global para uvicorn: `uvicorn expohub.main:app --reload`
app = create_application()
