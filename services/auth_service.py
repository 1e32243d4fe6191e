import hmac
import logging
from typing import Optional

from config import Settings
from domain.errors import UpstreamError

logger = logging.getLogger(__name__)


def verify_password(candidate: Optional[str], settings: Settings) -> bool:
    """
    Compare `candidate` against APP_PASSWORD.
    Raises UpstreamError when no password is configured on the server.
    """
    if not settings.app_password:
        raise UpstreamError("Server configuration error: APP_PASSWORD is not set")

    if not candidate:
        return False

    ok = hmac.compare_digest(candidate.encode("utf-8"), settings.app_password.encode("utf-8"))
    if not ok:
        logger.warning("Rejected dashboard login attempt")
    return ok
