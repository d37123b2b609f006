# ============================================================
# announcements.py — Annonces
# ------------------------------------------------------------
# Lecture publique, création/suppression réservées aux admins,
# likes et coeurs en bascule (un par utilisateur).
# ============================================================
from fastapi import APIRouter, Depends
from sqlmodel import Session

from auth import admin_user, current_user
from db import get_session
from errors import NotFoundError, ValidationError
from models import Announcement, AnnouncementCreate, User
from repository import AnnouncementRepository, UserRepository

router = APIRouter(prefix="/api/announcements")

REACTIONS = ("like", "heart")


def announcement_out(a: Announcement, repo: AnnouncementRepository, users: UserRepository) -> dict:
    author = users.get(a.author_id) if a.author_id else None
    return {
        "id": a.id,
        "title": a.title,
        "content": a.content,
        "author": {"id": author.id, "username": author.username} if author else None,
        "created_at": a.created_at.isoformat(),
        "likes": repo.count_reactions(a.id, "like"),
        "hearts": repo.count_reactions(a.id, "heart"),
    }


@router.get("")
def list_announcements(s: Session = Depends(get_session)):
    repo, users = AnnouncementRepository(s), UserRepository(s)
    return {"success": True,
            "data": [announcement_out(a, repo, users) for a in repo.list_newest_first()]}


@router.post("", status_code=201)
def create_announcement(body: AnnouncementCreate, admin: User = Depends(admin_user),
                        s: Session = Depends(get_session)):
    title, content = body.title.strip(), body.content.strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > 150:
        raise ValidationError("Title must be at most 150 characters")
    if not content:
        raise ValidationError("Content is required")
    if len(content) > 2000:
        raise ValidationError("Content must be at most 2000 characters")
    repo = AnnouncementRepository(s)
    a = repo.create(Announcement(title=title, content=content, author_id=admin.id))
    return {"success": True, "data": announcement_out(a, repo, UserRepository(s))}


# PATCH /api/announcements/{id}/like | /heart — bascule la réaction
@router.patch("/{announcement_id}/{kind}")
def react(announcement_id: int, kind: str, user: User = Depends(current_user),
          s: Session = Depends(get_session)):
    if kind not in REACTIONS:
        raise NotFoundError("Not found.")
    repo = AnnouncementRepository(s)
    if not repo.get(announcement_id):
        raise NotFoundError("Not found.")
    total = repo.toggle_reaction(announcement_id, user.id, kind)
    return {"success": True, kind + "s": total}


@router.delete("/{announcement_id}")
def delete_announcement(announcement_id: int, admin: User = Depends(admin_user),
                        s: Session = Depends(get_session)):
    repo = AnnouncementRepository(s)
    a = repo.get(announcement_id)
    if not a:
        raise NotFoundError("Not found.")
    repo.delete(a)
    return {"success": True, "message": "Deleted."}
