from marshmallow import Schema, fields, validate

_content = validate.Length(min=1, max=5000)


class CommentCreateSchema(Schema):
    post_id = fields.String(required=True)
    content = fields.String(required=True, validate=_content)


class CommentUpdateSchema(Schema):
    content = fields.String(required=True, validate=_content)


class CommentOutSchema(Schema):
    id = fields.String()
    owner_id = fields.String()
    post_id = fields.String()
    content = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
