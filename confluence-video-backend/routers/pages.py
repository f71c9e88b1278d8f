"""
Router for Confluence page endpoints.
Handles page lookup, search and posting videos as page comments.
"""

from typing import List
from fastapi import APIRouter, HTTPException, Depends
from confluence import CommentPublisher, ConfluenceClient, get_user_client
from schemas import CommentRequest, CommentResponse, FooterComment, PageDetails, PageSummary


router = APIRouter(prefix="/pages", tags=["pages"])


@router.get("/search", response_model=List[PageSummary])
def search_pages(query: str = "", client: ConfluenceClient = Depends(get_user_client)):
    """Finds pages by title, or lists recently modified pages when no query is given."""
    return client.search_pages(query)


@router.get("/{page_id}", response_model=PageDetails)
def get_page(page_id: str, client: ConfluenceClient = Depends(get_user_client)):
    return client.get_page_details(page_id)


@router.get("/{page_id}/comments", response_model=List[FooterComment])
def list_comments(page_id: str, client: ConfluenceClient = Depends(get_user_client)):
    comments = client.list_footer_comments(page_id)
    return [
        FooterComment(
            id=str(c.get("id")),
            author_id=(c.get("version") or {}).get("authorId"),
            created_at=(c.get("version") or {}).get("createdAt"),
            body=c.get("body"),
        )
        for c in comments
        if c.get("id")
    ]


@router.post("/{page_id}/video-comment", response_model=CommentResponse)
def add_video_comment(page_id: str, request: CommentRequest, client: ConfluenceClient = Depends(get_user_client)):
    """Posts a finished video link to the page as the calling user."""
    posted = CommentPublisher().publish(page_id, request.video_url, request.requested_by, user_client=client)
    if not posted:
        raise HTTPException(status_code=502, detail="Failed to post the video comment.")
    return {"page_id": page_id, "posted": True}
