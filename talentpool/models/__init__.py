from .user import User
from .batch import Batch
from .queue_item import QueueItem
from .candidate import Candidate
from .screening import Screening
from .job_vacancy import JobVacancy
from .notification import Notification
# base and mixins are imported by the above as needed
