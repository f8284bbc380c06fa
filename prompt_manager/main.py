"""
WSGI entry point: ``gunicorn prompt_manager.main:app``.

Building the app validates configuration, so a missing Stripe secret stops
the process here rather than failing individual requests later.
"""
import os

from prompt_manager.factory import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    app.run(host="0.0.0.0", port=port, debug=app.config.get("APP_ENV") == "development")
