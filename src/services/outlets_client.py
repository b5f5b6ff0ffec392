import logging
from typing import List

import requests

logger = logging.getLogger(__name__)

class OutletsServiceError(Exception):
    """The outlets service could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class OutletsClient:
    """
    Client for the outlets service. Calls block and are never retried: a
    failure is the caller's failure.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "x-api-key": api_key,
            "Content-Type": "application/json",
        })

    def get_outlets_by_campaign(self, campaign_id) -> List[str]:
        url = f"{self.base_url}/internal/outlets/by-campaign/{campaign_id}"
        logger.debug("Fetching outlets for campaign %s from %s", campaign_id, url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise OutletsServiceError(f"outlets-service unreachable: {e}") from e

        if not response.ok:
            raise OutletsServiceError(
                f"outlets-service responded with {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            outlet_ids = response.json()["outletIds"]
        except (ValueError, KeyError, TypeError) as e:
            raise OutletsServiceError(f"outlets-service returned an unexpected body: {e}", response.status_code) from e
        if not isinstance(outlet_ids, list):
            raise OutletsServiceError("outlets-service returned a non-list outletIds", response.status_code)
        return outlet_ids
