"""Trust ``X-Forwarded-*`` headers from a known number of reverse proxies."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.

    ``request.remote_addr`` becomes the ``ip_address`` stored on every refresh
    record, so the hop count must match the deployment: trusting more hops
    than exist lets clients forge their recorded address.

    Settings: ``USE_PROXYFIX`` (default ``True``) and ``PROXY_TRUSTED_HOPS``
    (default ``1``; ``0`` disables forwarding even when enabled).
    """
    hops = int(app.config.get("PROXY_TRUSTED_HOPS", 1))
    if not app.config.get("USE_PROXYFIX", True) or hops <= 0:
        return
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)
