"""Run the Anyonic server: python -m anyonic.server"""

import uvicorn

from anyonic.server.app import app

uvicorn.run(app, host="0.0.0.0", port=8080)
