from __future__ import annotations

from flask import Blueprint, request, g

from . import get_storage
from .errors import success_response, message_response
from .posts import get_post_or_404
from models.comment import Comment
from models.schemas.comment import CommentCreateSchema, CommentUpdateSchema, CommentOutSchema
from utils.decorators import jwt_required, ensure_owner
from utils.exceptions import NotFoundError

bp = Blueprint("comments", __name__)

create_schema = CommentCreateSchema()
update_schema = CommentUpdateSchema()
out_schema = CommentOutSchema()
out_list_schema = CommentOutSchema(many=True)


def get_comment_or_404(comment_id: str) -> Comment:
    comment = get_storage().get(Comment, comment_id)
    if comment is None:
        raise NotFoundError(f"Comment with id {comment_id} not found")
    return comment


@bp.post("")
@jwt_required()
def create_comment():
    data = create_schema.load(request.get_json(silent=True) or {})
    post = get_post_or_404(data["post_id"])

    comment = Comment(owner_id=g.current_user_id, post_id=post.id, content=data["content"])
    storage = get_storage()
    storage.new(comment)
    storage.save()
    return success_response(out_schema.dump(comment), 201)


@bp.get("")
def list_comments():
    session = get_storage().get_session()
    rows = session.query(Comment).order_by(Comment.created_at.desc()).all()
    return success_response(out_list_schema.dump(rows))


@bp.get("/<comment_id>")
def get_comment(comment_id: str):
    return success_response(out_schema.dump(get_comment_or_404(comment_id)))


@bp.get("/post/<post_id>")
def list_comments_by_post(post_id: str):
    post = get_post_or_404(post_id)
    rows = (
        get_storage()
        .get_session()
        .query(Comment)
        .filter(Comment.post_id == post.id)
        .order_by(Comment.created_at.desc())
        .all()
    )
    return success_response(out_list_schema.dump(rows))


@bp.put("/<comment_id>")
@jwt_required()
def update_comment(comment_id: str):
    data = update_schema.load(request.get_json(silent=True) or {})
    comment = get_comment_or_404(comment_id)
    ensure_owner(comment, g.current_user_id)

    comment.content = data["content"]
    get_storage().save()
    return success_response(out_schema.dump(comment))


@bp.delete("/<comment_id>")
@jwt_required()
def delete_comment(comment_id: str):
    comment = get_comment_or_404(comment_id)
    ensure_owner(comment, g.current_user_id)

    storage = get_storage()
    storage.delete(comment)
    storage.save()
    return message_response("Comment deleted")
