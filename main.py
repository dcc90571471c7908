"""
Entry point for the basecamp API server.

Run with:
    uvicorn basecamp.api.main:app --reload --port 8100
    python main.py
"""
import sys
from pathlib import Path

# Project root on the path so `config` and `basecamp` import from a checkout
sys.path.insert(0, str(Path(__file__).parent))

import uvicorn
from config import get_settings

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run(
        "basecamp.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
