"""OMIE daily min/avg/max price file fetcher."""

import logging

import requests

from omiewatch.config import DEFAULT_URL_TEMPLATE
from omiewatch.errors import FetchError
from omiewatch.models import Period

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d_%m_%Y"


def build_url(period: Period, template: str = DEFAULT_URL_TEMPLATE) -> str:
    """Fill the file URL template for one calendar month."""
    return template.format(
        year=f"{period.year:04d}",
        month=f"{period.month:02d}",
        first_day=period.first_day.strftime(DATE_FORMAT),
        last_day=period.last_day.strftime(DATE_FORMAT),
    )


def fetch_period(
    period: Period,
    *,
    template: str = DEFAULT_URL_TEMPLATE,
    timeout: float = 30.0,
) -> str:
    """
    Download the raw `;`-delimited table for `period`.

    Single GET, no retries. Raises FetchError on transport failure or any
    status other than 200.
    """
    url = build_url(period, template)
    logger.debug("OMIE: GET %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(f"request to {url} failed: {e}") from e

    if resp.status_code != 200:
        raise FetchError(
            f"server status code not 200: {resp.status_code}",
            status_code=resp.status_code,
        )

    # OMIE serves ISO-8859-1 text without a charset header
    if "charset" not in resp.headers.get("Content-Type", "").lower():
        resp.encoding = "latin-1"
    logger.info("OMIE: downloaded %d bytes for %s", len(resp.content), period.first_day.strftime("%m/%Y"))
    return resp.text
