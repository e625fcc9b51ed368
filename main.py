"""
Photo Director service entry point.

Serves the workflow API with uvicorn on API_HOST:API_PORT, reloading on code
changes when ENV=development.
"""

import uvicorn

from director.factory import create_app
from director.core.config import get_settings

app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
