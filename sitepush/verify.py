import logging

import requests

logger = logging.getLogger(__name__)


def verify_deployment(url, timeout=10):
    """GET the deployed URL; returns the status code or None if unreachable."""
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
    except requests.exceptions.RequestException as exc:
        logger.warning("Could not reach %s: %s", url, exc)
        return None
    return response.status_code
