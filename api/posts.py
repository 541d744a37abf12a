from __future__ import annotations

from flask import Blueprint, request, g

from . import get_storage
from .errors import success_response, message_response
from models.post import Post
from models.user import User
from models.schemas.post import PostCreateSchema, PostUpdateSchema, PostOutSchema
from utils.decorators import jwt_required, ensure_owner
from utils.exceptions import NotFoundError

bp = Blueprint("posts", __name__)

create_schema = PostCreateSchema()
update_schema = PostUpdateSchema()
out_schema = PostOutSchema()
out_list_schema = PostOutSchema(many=True)


def get_post_or_404(post_id: str) -> Post:
    post = get_storage().get(Post, post_id)
    if post is None:
        raise NotFoundError(f"Post with id {post_id} not found")
    return post


@bp.post("")
@jwt_required()
def create_post():
    data = create_schema.load(request.get_json(silent=True) or {})
    post = Post(
        owner_id=g.current_user_id,
        title=data["title"],
        content=data["content"],
        image_attachment_url=data.get("image_attachment_url"),
    )
    storage = get_storage()
    storage.new(post)
    storage.save()
    return success_response(out_schema.dump(post), 201)


@bp.get("")
def list_posts():
    """All posts, newest first."""
    session = get_storage().get_session()
    rows = session.query(Post).order_by(Post.created_at.desc()).all()
    return success_response(out_list_schema.dump(rows))


@bp.get("/<post_id>")
def get_post(post_id: str):
    return success_response(out_schema.dump(get_post_or_404(post_id)))


@bp.get("/sender/<owner_id>")
def list_posts_by_sender(owner_id: str):
    storage = get_storage()
    if storage.get(User, owner_id) is None:
        raise NotFoundError(f"User with id {owner_id} not found")
    rows = (
        storage.get_session()
        .query(Post)
        .filter(Post.owner_id == owner_id)
        .order_by(Post.created_at.desc())
        .all()
    )
    return success_response(out_list_schema.dump(rows))


@bp.put("/<post_id>")
@jwt_required()
def update_post(post_id: str):
    data = update_schema.load(request.get_json(silent=True) or {})
    post = get_post_or_404(post_id)
    ensure_owner(post, g.current_user_id)

    post.content = data["content"]
    get_storage().save()
    return success_response(out_schema.dump(post))


@bp.delete("/<post_id>")
@jwt_required()
def delete_post(post_id: str):
    """Delete a post together with its comments."""
    post = get_post_or_404(post_id)
    ensure_owner(post, g.current_user_id)

    storage = get_storage()
    storage.delete(post)
    storage.save()
    return message_response("Post deleted")
