from ..models.parent import Parent
from ..models.kid import Kid
from ..models.task import Task, TaskStatus
from ..models.reward import Reward, Redemption
from ..models.points import PointTransaction, TransactionType
from ..db.base_class import Base
