"""
One function per Datebook endpoint.

Each function takes an ApiClient first and returns the unwrapped resource
(the value under its envelope key). PATCH helpers take keyword arguments
defaulting to UNSET: only the keys actually passed are sent, so passing
None clears a field while leaving an argument out keeps it.
"""

from typing import Any, Optional
from urllib.parse import quote

from .http import ApiClient


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _seg(value: str) -> str:
    return quote(str(value), safe="")


def _body(**fields: Any) -> dict[str, Any]:
    """Drop UNSET keys; None survives as an explicit null."""
    return {key: value for key, value in fields.items() if value is not UNSET}


def _page_path(scrapbook_id: str, page_id: str, collection: str) -> str:
    return f"/scrapbooks/{_seg(scrapbook_id)}/pages/{_seg(page_id)}/{collection}"


# Auth and profile

def verify_id_token(client: ApiClient, provider: str, id_token: str) -> dict:
    """Exchange a Google/Apple ID token for a session; sets client.token."""
    res = client.post("/auth/verify", {"provider": provider, "idToken": id_token})
    client.token = res["token"]
    return res


def get_me(client: ApiClient) -> dict:
    return client.get("/me")


def register_push_token(client: ApiClient, token: Optional[str]) -> None:
    """Register this device's Expo token; None unregisters."""
    client.post("/push-tokens/register", {"token": token})


def get_health(client: ApiClient) -> dict:
    return client.get("/health")


# Relationships

def list_my_relationships(client: ApiClient) -> list[dict]:
    return client.get("/relationships/mine")["relationships"]


def create_relationship(client: ApiClient) -> dict:
    return client.post("/relationships")


def create_invite(
    client: ApiClient,
    relationship_id: Optional[str] = None,
    target_user_id: Optional[str] = None,
    target_email: Optional[str] = None,
) -> dict:
    """New invite code: {"code", "expiresAt", "link"?}."""
    res = client.post(
        "/relationships/invite",
        {
            k: v
            for k, v in {
                "relationshipId": relationship_id,
                "targetUserId": target_user_id,
                "targetEmail": target_email,
            }.items()
            if v is not None
        },
    )
    return {k: v for k, v in res.items() if k != "ok"}


def list_pending_invites(client: ApiClient) -> list[dict]:
    return client.get("/relationships/invites/pending")["invites"]


def join_relationship(client: ApiClient, code: str) -> dict:
    return client.post("/relationships/join", {"code": code})


def leave_relationship(client: ApiClient, relationship_id: str) -> None:
    client.post(f"/relationships/{_seg(relationship_id)}/leave")


# Timeline entries

def list_entries(
    client: ApiClient,
    relationship_id: str,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> dict:
    """One page of the timeline: {"entries": [...], "nextCursor": str | None}."""
    res = client.get(
        f"/relationships/{_seg(relationship_id)}/entries",
        params={"limit": limit, "cursor": cursor},
    )
    return {"entries": res["entries"], "nextCursor": res.get("nextCursor")}


def create_entry(
    client: ApiClient,
    relationship_id: str,
    title: str,
    occurred_at: Optional[str] = None,
    body: Optional[str] = None,
) -> dict:
    payload: dict[str, Any] = {"title": title}
    if occurred_at is not None:
        payload["occurredAt"] = occurred_at
    if body is not None:
        payload["body"] = body
    return client.post(f"/relationships/{_seg(relationship_id)}/entries", payload)["entry"]


def get_entry(client: ApiClient, entry_id: str) -> dict:
    return client.get(f"/entries/{_seg(entry_id)}")["entry"]


def update_entry(
    client: ApiClient,
    entry_id: str,
    *,
    title: Any = UNSET,
    occurred_at: Any = UNSET,
    body: Any = UNSET,
) -> dict:
    payload = _body(title=title, occurredAt=occurred_at, body=body)
    return client.patch(f"/entries/{_seg(entry_id)}", payload)["entry"]


def attach_entry_media(client: ApiClient, entry_id: str, blob_key: str, width: int, height: int, kind: str = "photo") -> dict:
    res = client.post(
        f"/entries/{_seg(entry_id)}/media",
        {"blobKey": blob_key, "kind": kind, "width": width, "height": height},
    )
    return res["media"]


# Media

def create_upload_url(client: ApiClient, relationship_id: str, content_type: Optional[str] = None) -> dict:
    """Signed upload target: {"uploadUrl", "blobKey", "expiresAt"}."""
    payload = {"relationshipId": relationship_id}
    if content_type:
        payload["contentType"] = content_type
    res = client.post("/media/upload-url", payload)
    return {"uploadUrl": res["uploadUrl"], "blobKey": res["blobKey"], "expiresAt": res["expiresAt"]}


# Scrapbooks

def list_scrapbooks(client: ApiClient) -> list[dict]:
    return client.get("/scrapbooks")["scrapbooks"]


def create_scrapbook(
    client: ApiClient,
    relationship_id: str,
    title: str,
    cover_blob_key: Optional[str] = None,
    cover_width: Optional[int] = None,
    cover_height: Optional[int] = None,
) -> dict:
    payload: dict[str, Any] = {"relationshipId": relationship_id, "title": title}
    if cover_blob_key:
        payload.update({"coverBlobKey": cover_blob_key, "coverWidth": cover_width, "coverHeight": cover_height})
    return client.post("/scrapbooks", payload)["scrapbook"]


def get_scrapbook(client: ApiClient, scrapbook_id: str) -> dict:
    return client.get(f"/scrapbooks/{_seg(scrapbook_id)}")["scrapbook"]


def get_scrapbook_details(client: ApiClient, scrapbook_id: str) -> dict:
    return client.get(f"/scrapbooks/{_seg(scrapbook_id)}/details")["details"]


def update_scrapbook_details(
    client: ApiClient,
    scrapbook_id: str,
    *,
    date: Any = UNSET,
    place: Any = UNSET,
    place_id: Any = UNSET,
    mood_tags: Any = UNSET,
    review: Any = UNSET,
) -> dict:
    payload = _body(date=date, place=place, placeId=place_id, moodTags=mood_tags, review=review)
    return client.patch(f"/scrapbooks/{_seg(scrapbook_id)}/details", payload)["details"]


# Scrapbook pages

def list_scrapbook_pages(client: ApiClient, scrapbook_id: str) -> list[dict]:
    return client.get(f"/scrapbooks/{_seg(scrapbook_id)}/pages")["pages"]


def create_scrapbook_page(client: ApiClient, scrapbook_id: str) -> dict:
    return client.post(f"/scrapbooks/{_seg(scrapbook_id)}/pages")["page"]


def update_scrapbook_page_details(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    *,
    date: Any = UNSET,
    place: Any = UNSET,
    place_id: Any = UNSET,
    mood_tags: Any = UNSET,
    review: Any = UNSET,
) -> dict:
    payload = _body(date=date, place=place, placeId=place_id, moodTags=mood_tags, review=review)
    return client.patch(_page_path(scrapbook_id, page_id, 'details'), payload)["details"]


def attach_scrapbook_page_media(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    blob_key: str,
    width: int,
    height: int,
    kind: str = "photo",
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
) -> dict:
    payload = _body(blobKey=blob_key, kind=kind, width=width, height=height, x=x, y=y, scale=scale)
    return client.post(_page_path(scrapbook_id, page_id, "media"), payload)["media"]


def update_scrapbook_page_media(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    media_id: str,
    *,
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
) -> dict:
    path = f"{_page_path(scrapbook_id, page_id, 'media')}/{_seg(media_id)}"
    return client.patch(path, _body(x=x, y=y, scale=scale))["media"]


def delete_scrapbook_page_media(client: ApiClient, scrapbook_id: str, page_id: str, media_id: str) -> None:
    client.delete(f"{_page_path(scrapbook_id, page_id, 'media')}/{_seg(media_id)}")


# Stickers

def list_stickers(client: ApiClient, scrapbook_id: str, page_id: str) -> list[dict]:
    return client.get(_page_path(scrapbook_id, page_id, "stickers"))["stickers"]


def create_sticker(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    kind: str,
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
    rotation: Any = UNSET,
) -> dict:
    payload = _body(kind=kind, x=x, y=y, scale=scale, rotation=rotation)
    return client.post(_page_path(scrapbook_id, page_id, "stickers"), payload)["sticker"]


def update_sticker(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    sticker_id: str,
    *,
    kind: Any = UNSET,
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
    rotation: Any = UNSET,
) -> dict:
    path = f"{_page_path(scrapbook_id, page_id, 'stickers')}/{_seg(sticker_id)}"
    return client.patch(path, _body(kind=kind, x=x, y=y, scale=scale, rotation=rotation))["sticker"]


def delete_sticker(client: ApiClient, scrapbook_id: str, page_id: str, sticker_id: str) -> None:
    client.delete(f"{_page_path(scrapbook_id, page_id, 'stickers')}/{_seg(sticker_id)}")


# Texts

def list_texts(client: ApiClient, scrapbook_id: str, page_id: str) -> list[dict]:
    return client.get(_page_path(scrapbook_id, page_id, "texts"))["texts"]


def create_text(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    *,
    text: Any = UNSET,
    font: Any = UNSET,
    color: Any = UNSET,
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
    rotation: Any = UNSET,
) -> dict:
    payload = _body(text=text, font=font, color=color, x=x, y=y, scale=scale, rotation=rotation)
    return client.post(_page_path(scrapbook_id, page_id, "texts"), payload)["text"]


def update_text(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    text_id: str,
    *,
    text: Any = UNSET,
    font: Any = UNSET,
    color: Any = UNSET,
    x: Any = UNSET,
    y: Any = UNSET,
    scale: Any = UNSET,
    rotation: Any = UNSET,
) -> dict:
    path = f"{_page_path(scrapbook_id, page_id, 'texts')}/{_seg(text_id)}"
    payload = _body(text=text, font=font, color=color, x=x, y=y, scale=scale, rotation=rotation)
    return client.patch(path, payload)["text"]


def delete_text(client: ApiClient, scrapbook_id: str, page_id: str, text_id: str) -> None:
    client.delete(f"{_page_path(scrapbook_id, page_id, 'texts')}/{_seg(text_id)}")


# Notes

def list_notes(client: ApiClient, scrapbook_id: str, page_id: str) -> list[dict]:
    return client.get(_page_path(scrapbook_id, page_id, "notes"))["notes"]


def create_note(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    *,
    text: Any = UNSET,
    color: Any = UNSET,
    x: Any = UNSET,
    y: Any = UNSET,
) -> dict:
    payload = _body(text=text, color=color, x=x, y=y)
    return client.post(_page_path(scrapbook_id, page_id, "notes"), payload)["note"]


def update_note(
    client: ApiClient,
    scrapbook_id: str,
    page_id: str,
    note_id: str,
    *,
    text: Any = UNSET,
    color: Any = UNSET,
    x: Any = UNSET,
    y: Any = UNSET,
) -> dict:
    path = f"{_page_path(scrapbook_id, page_id, 'notes')}/{_seg(note_id)}"
    return client.patch(path, _body(text=text, color=color, x=x, y=y))["note"]


def delete_note(client: ApiClient, scrapbook_id: str, page_id: str, note_id: str) -> None:
    client.delete(f"{_page_path(scrapbook_id, page_id, 'notes')}/{_seg(note_id)}")


# Coupons

def create_coupon(
    client: ApiClient,
    relationship_id: str,
    recipient_user_id: str,
    title: str,
    template_id: str,
    description: Optional[str] = None,
    expires_at: Optional[str] = None,
) -> dict:
    payload: dict[str, Any] = {
        "relationshipId": relationship_id,
        "recipientUserId": recipient_user_id,
        "title": title,
        "templateId": template_id,
    }
    if description is not None:
        payload["description"] = description
    if expires_at is not None:
        payload["expiresAt"] = expires_at
    return client.post("/coupons", payload)["coupon"]


def list_coupons(client: ApiClient, status: Optional[str] = None, relationship_id: Optional[str] = None) -> list[dict]:
    return client.get("/coupons", params={"status": status, "relationshipId": relationship_id})["coupons"]


def get_coupon(client: ApiClient, coupon_id: str) -> dict:
    return client.get(f"/coupons/{_seg(coupon_id)}")["coupon"]


def redeem_coupon(client: ApiClient, coupon_id: str) -> dict:
    return client.post(f"/coupons/{_seg(coupon_id)}/redeem")["coupon"]


# Quests

def get_quests(client: ApiClient, relationship_id: Optional[str] = None) -> dict:
    """{"weekly": Quest, "monthly": Quest} for the relationship."""
    res = client.get("/quests", params={"relationshipId": relationship_id})
    return {"weekly": res["weekly"], "monthly": res["monthly"]}
