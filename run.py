"""Local development server.

Usage:
    python run.py

Reads .env first so DATABASE_URL / SECRET_KEY are picked up, then serves
the JSON API on port 5001.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before the config classes read os.environ

from leaddesk import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=int(os.environ.get("PORT", 5001)))
