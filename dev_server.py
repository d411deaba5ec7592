#!/usr/bin/env python3
"""
Local development server for the tracking plan consistency API.
Tables are created on startup unless AUTO_CREATE_SCHEMA=false (then run `alembic upgrade head`).
"""

import os
import sys
from pathlib import Path

# DATABASE_URL, LOG_LEVEL and API_PORT may come from .env
from dotenv import load_dotenv
load_dotenv()

# importable from a checkout without `pip install -e .`
current_dir = Path(__file__).parent
src_dir = current_dir / "src"
sys.path.insert(0, str(src_dir))

# settings.environment is "development" for local runs
os.environ.setdefault('ENVIRONMENT', 'development')
if not os.getenv('DATABASE_URL'):
    print("DATABASE_URL not set, using sqlite:///./trackplan.db")

if __name__ == "__main__":
    import uvicorn
    from trackplan.config import get_settings

    settings = get_settings()
    print("Starting tracking plan consistency API")
    print(f"Docs: http://localhost:{settings.api_port}/docs")
    print(f"Health Check: http://localhost:{settings.api_port}/health")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        "trackplan.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
