"""Development entrypoint for running a chain hop locally.

Usage:
- FLASK_APP=message_chain.main:app flask run --port 8080
- PORT=8081 python -m message_chain.main

Run three copies on 8080/8081/8082 to get the A -> B -> C topology, or
set SERVICES_USE_NETWORK=false to serve the whole chain from one process.
"""

from __future__ import annotations

import os

from message_chain import create_app

app = create_app()

if __name__ == "__main__":
    # Simple built-in server for quick smoke testing
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "8080")), debug=True)
