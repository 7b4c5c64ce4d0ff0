"""HTTP client for the drafts API, used by editors running outside the browser."""

import logging

import requests

logger = logging.getLogger(__name__)


class DraftsClient:
    """
    Thin wrapper around /api/content/drafts/ and /api/content/blog/publish/.

    Every method returns the server's JSON envelope as a dict. Network and
    decoding problems are reported in the same shape instead of raised.
    """

    drafts_path = "/api/content/drafts/"
    publish_path = "/api/content/blog/publish/"

    def __init__(self, base_url: str, session: requests.Session = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self.timeout = timeout

    def _headers(self):
        # Session-authenticated writes need the CSRF cookie echoed back
        csrf_token = self.session.cookies.get("csrftoken")
        if not csrf_token:
            return {}
        return {"X-CSRFToken": csrf_token, "Referer": f"{self.base_url}/"}

    def _request(self, method: str, path: str, params: dict = None, payload: dict = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            return {"ok": False, "kind": "internal", "message": "Network error"}

        try:
            body = response.json()
        except ValueError:
            logger.warning(f"{method} {url} returned non-JSON response ({response.status_code})")
            return {"ok": False, "kind": "internal", "message": f"Unexpected response ({response.status_code})"}

        if not isinstance(body, dict) or "ok" not in body:
            return {"ok": False, "kind": "internal", "message": f"Unexpected response ({response.status_code})"}
        return body

    def save_draft(self, fields: dict, draft_id: str = None, blog_id: str = None, revision: int = None) -> dict:
        """PATCH the known draft, or POST a new one (upserted by blog_id when given)."""
        payload = dict(fields)
        if revision is not None:
            payload["revision"] = revision
        if draft_id:
            payload["draftId"] = draft_id
            return self._request("PATCH", self.drafts_path, payload=payload)
        payload["blogId"] = blog_id
        return self._request("POST", self.drafts_path, payload=payload)

    def get_draft(self, draft_id: str) -> dict:
        return self._request("GET", self.drafts_path, params={"draftId": draft_id})

    def list_drafts(self) -> dict:
        return self._request("GET", self.drafts_path)

    def delete_draft(self, draft_id: str) -> dict:
        return self._request("DELETE", self.drafts_path, params={"draftId": draft_id})

    def publish(self, fields: dict, blog_id: str = None, draft_id: str = None) -> dict:
        payload = dict(fields)
        if blog_id:
            payload["blogId"] = blog_id
        if draft_id:
            payload["draftId"] = draft_id
        return self._request("POST", self.publish_path, payload=payload)
