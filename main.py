"""Application entry point.

Serves the Mesop UI at ``/`` and the summarization relay at ``/api`` from a
single origin::

    python main.py                     # development server
    gunicorn main:application          # production
"""

from __future__ import annotations

import mesop as me
from dotenv import load_dotenv
from werkzeug.middleware.dispatcher import DispatcherMiddleware
from werkzeug.serving import run_simple

load_dotenv()

from monoassist.api import create_relay_app  # noqa: E402
from monoassist.config import settings  # noqa: E402
from monoassist.core.log import setup_logging  # noqa: E402
from monoassist.ui.handlers import on_load  # noqa: E402
from monoassist.ui.page import main_page as _main_page_impl  # noqa: E402

setup_logging(console=True)


@me.page(
    path="/",
    title="Моно-ассистент",
    stylesheets=[
        "https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap",
    ],
    security_policy=me.SecurityPolicy(
        allowed_script_srcs=["https://fonts.googleapis.com", "https://fonts.gstatic.com"],
        allowed_connect_srcs=["https://fonts.googleapis.com", "https://fonts.gstatic.com"],
    ),
    on_load=on_load,
)
def main_page():
    _main_page_impl()


application = DispatcherMiddleware(me.create_wsgi_app(), {"/api": create_relay_app(url_prefix="")})


if __name__ == "__main__":
    run_simple("0.0.0.0", settings.server_port, application, use_reloader=False, threaded=True)
