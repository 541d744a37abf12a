from models.base_model import Base
from models.user import User
from models.user_session import UserSession
from models.post import Post
from models.comment import Comment
from models.db_storage import DBStorage
