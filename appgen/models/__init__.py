from appgen.models.user import User
from appgen.models.job import Job

__all__ = ["User", "Job"]
