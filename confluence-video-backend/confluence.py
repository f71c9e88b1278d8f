"""
Confluence REST access: page lookup, search, user identity and footer comments.
Calls are made either as the requesting user (forwarded Authorization header)
or as the application itself (service account API token).
"""

import html
import logging
import re
from typing import List, Optional

import requests
from fastapi import Header, HTTPException

from config import (
    CONFLUENCE_API_TOKEN,
    CONFLUENCE_BASE_URL,
    CONFLUENCE_EMAIL,
    CONFLUENCE_TIMEOUT,
    PAGE_SEARCH_LIMIT,
    PAGE_SUMMARY_LENGTH,
)
from schemas import PageDetails, PageSummary, Requester


def strip_html(markup: Optional[str]) -> str:
    """Reduce page HTML to plain text for summaries."""
    text = markup or ""
    text = re.sub(r"<style[^>]*>[\s\S]*?</style>", " ", text, flags=re.IGNORECASE)
    text = re.sub(r"<script[^>]*>[\s\S]*?</script>", " ", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    return re.sub(r"\s+", " ", text).strip()


class ConfluenceClient:
    """Thin wrapper around the Confluence Cloud REST API."""

    def __init__(self, base_url: str = CONFLUENCE_BASE_URL, auth=None, authorization: Optional[str] = None, session=None):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.headers = {"Accept": "application/json"}
        if authorization:
            self.headers["Authorization"] = authorization
        self.session = session or requests

    @classmethod
    def as_app(cls):
        if not (CONFLUENCE_BASE_URL and CONFLUENCE_EMAIL and CONFLUENCE_API_TOKEN):
            raise HTTPException(status_code=500, detail="Confluence app credentials are not configured.")
        return cls(auth=(CONFLUENCE_EMAIL, CONFLUENCE_API_TOKEN))

    @classmethod
    def as_user(cls, authorization: Optional[str]):
        if not authorization:
            raise HTTPException(status_code=401, detail="Missing Authorization header for Confluence.")
        if not CONFLUENCE_BASE_URL:
            raise HTTPException(status_code=500, detail="CONFLUENCE_BASE_URL is not configured.")
        return cls(authorization=authorization)

    def _request(self, method: str, endpoint: str, **kwargs):
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method, url, headers=self.headers, auth=self.auth, timeout=CONFLUENCE_TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            raise HTTPException(status_code=503, detail=f"Could not connect to Confluence: {e}")

        if not response.ok:
            logging.error(f"Confluence {method} {endpoint} failed ({response.status_code}): {response.text}")
            raise HTTPException(status_code=502, detail=f"Confluence request failed: {response.text}")

        try:
            return response.json()
        except ValueError:
            raise HTTPException(status_code=502, detail="Confluence returned an invalid response format.")

    def get_page_details(self, page_id: str) -> PageDetails:
        if not page_id:
            raise HTTPException(status_code=400, detail="pageId is required")

        page = self._request("GET", f"/wiki/api/v2/pages/{page_id}", params={"body-format": "export_view"})
        body = (page.get("body") or {}).get("export_view") or {}
        space = page.get("space") or {}
        webui = (page.get("_links") or {}).get("webui")
        return PageDetails(
            id=str(page.get("id", page_id)),
            title=page.get("title"),
            type=page.get("type"),
            space_key=space.get("key"),
            space_name=space.get("name"),
            url=f"/wiki{webui}" if webui else None,
            summary=strip_html(body.get("value"))[:PAGE_SUMMARY_LENGTH],
        )

    def search_pages(self, query: str = "") -> List[PageSummary]:
        query = (query or "").strip()
        if query:
            escaped = query.replace('"', '\\"')
            cql = f'type = "page" AND title ~ "{escaped}"'
        else:
            cql = 'type = "page" ORDER BY lastmodified DESC'

        data = self._request(
            "GET",
            "/wiki/rest/api/search",
            params={"limit": PAGE_SEARCH_LIMIT, "cql": cql, "expand": "content.space"},
        )
        pages = []
        for result in data.get("results") or []:
            content = result.get("content") or {}
            if not content.get("id"):
                continue
            space = content.get("space") or {}
            pages.append(PageSummary(
                id=str(content["id"]),
                title=content.get("title"),
                space_key=space.get("key"),
                space_name=space.get("name"),
            ))
        return pages

    def get_current_user(self) -> Requester:
        user = self._request("GET", "/wiki/rest/api/user/current")
        return Requester(account_id=user.get("accountId"), display_name=user.get("displayName"))

    def list_footer_comments(self, page_id: str) -> list:
        data = self._request("GET", f"/wiki/api/v2/pages/{page_id}/footer-comments", params={"body-format": "storage"})
        return data.get("results") or []

    def add_footer_comment(self, page_id: str, body_html: str) -> dict:
        payload = {"pageId": page_id, "body": {"representation": "storage", "value": body_html}}
        return self._request("POST", "/wiki/api/v2/footer-comments", json=payload)


def get_user_client(authorization: Optional[str] = Header(None)) -> ConfluenceClient:
    """FastAPI dependency acting as the calling user."""
    return ConfluenceClient.as_user(authorization)


def get_optional_user_client(authorization: Optional[str] = Header(None)) -> Optional[ConfluenceClient]:
    """Like get_user_client, but None when the caller did not forward credentials."""
    if not authorization or not CONFLUENCE_BASE_URL:
        return None
    return ConfluenceClient.as_user(authorization)


def format_comment_html(video_url: str, requested_by: Optional[Requester] = None) -> str:
    safe_url = html.escape(video_url, quote=True)
    parts = [
        "<p><strong>🎬 Your page video is ready</strong></p>",
        f'<p><a href="{safe_url}">{safe_url}</a></p>',
    ]
    if requested_by and requested_by.display_name:
        parts.append(f"<p>Requested by: {html.escape(requested_by.display_name)}</p>")
    return "".join(parts)


class CommentPublisher:
    """Posts the finished video link back to the originating page."""

    def __init__(self, app_client_factory=ConfluenceClient.as_app):
        self.app_client_factory = app_client_factory

    def publish(
        self,
        page_id: str,
        video_url: str,
        requested_by: Optional[Requester] = None,
        user_client: Optional[ConfluenceClient] = None,
        as_app: bool = False,
    ) -> bool:
        """Returns True when the comment was posted. Never raises."""
        try:
            client = self.app_client_factory() if as_app else user_client
            if client is None:
                logging.error(f"❌ No Confluence client available to comment on page {page_id}.")
                return False
            client.add_footer_comment(page_id, format_comment_html(video_url, requested_by))
        except HTTPException as e:
            logging.error(f"❌ Failed to post video comment on page {page_id}: {e.detail}")
            return False

        logging.info(f"💬 Posted video comment on page {page_id}")
        return True
