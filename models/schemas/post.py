from marshmallow import Schema, fields, validate

_content = validate.Length(min=1, max=10000)


class PostCreateSchema(Schema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=255))
    content = fields.String(required=True, validate=_content)
    image_attachment_url = fields.Url(allow_none=True)


class PostUpdateSchema(Schema):
    content = fields.String(required=True, validate=_content)


class PostOutSchema(Schema):
    id = fields.String()
    owner_id = fields.String()
    title = fields.String()
    content = fields.String()
    image_attachment_url = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
