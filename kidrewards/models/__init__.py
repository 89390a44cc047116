from datetime import datetime, timezone
def utcnow():
    return datetime.now(timezone.utc)
from .parent import Parent
from .kid import Kid
from .task import Task
from .reward import Reward, Redemption
from .points import PointTransaction
