from flask import Blueprint

from channel_accounts import __version__
from channel_accounts.api.responses import api_response

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: OK
    """
    return api_response({"status": "ok", "version": __version__}, "ok")
