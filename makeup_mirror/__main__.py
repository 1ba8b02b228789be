"""
Run the HTTP backend as a module: python -m makeup_mirror
"""
import uvicorn

from .config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "makeup_mirror.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
