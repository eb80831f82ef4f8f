"""Models package."""

from .user import User
from .notification import Notification
from .skill import Skill
from .goal import Goal, goal_skills
from .goal_resource import GoalResource
from .post import Post
from .post_like import PostLike
from .comment import Comment
from .content_flag import ContentFlag
from .concern import Concern
from .concern_reply import ConcernReply
