"""
Waitress WSGI entry point for production deployment.

Usage::

    python wsgi.py

Or register as a Windows Service via NSSM::

    nssm install WeeklyReport "C:\\path\\to\\venv\\Scripts\\python.exe" "C:\\path\\to\\wsgi.py"

The weekly lock job is not scheduled here; run ``flask lock-reports``
from the host scheduler every Friday.
"""

import os

from waitress import serve

from weeklyreport import create_app

# Force production config when running via this entry point.
app = create_app(os.environ.get("FLASK_ENV", "production"))

if __name__ == "__main__":
    host = os.environ.get("WAITRESS_HOST", "127.0.0.1")
    port = int(os.environ.get("WAITRESS_PORT", "8080"))
    threads = int(os.environ.get("WAITRESS_THREADS", "8"))
    print(f"Starting Waitress on {host}:{port}")
    serve(app, host=host, port=port, threads=threads)
